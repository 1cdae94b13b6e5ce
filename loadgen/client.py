"""
HTTP client for the social network benchmark's wrk2-api endpoints

Every call is timed and reported to the injected metrics sink. Nothing is
raised for error statuses, timeouts or connection failures: the sample
records them and the caller decides what to do next.
"""
import logging
import time
from typing import Optional

import httpx

from loadgen.metrics import MetricsSink
from loadgen.models import FollowEdge, MetricSample, Post, SyntheticUser

logger = logging.getLogger(__name__)

REGISTER_PATH = "/wrk2-api/user/register"
FOLLOW_PATH = "/wrk2-api/user/follow"
UNFOLLOW_PATH = "/wrk2-api/user/unfollow"
COMPOSE_PATH = "/wrk2-api/post/compose"
HOME_TIMELINE_PATH = "/wrk2-api/home-timeline/read"
USER_TIMELINE_PATH = "/wrk2-api/user-timeline/read"

USER_AGENT = "socialnet-loadgen/0.1"


class SocialNetworkClient:
    """Synchronous client; one instance per virtual user"""

    def __init__(
        self,
        base_url: str,
        sink: MetricsSink,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.sink = sink
        self.timeout = timeout
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        self._http.close()

    def register(self, user: SyntheticUser, name: str = "RegisterUser") -> MetricSample:
        return self._request("POST", name, REGISTER_PATH, data=user.to_form())

    def follow(self, edge: FollowEdge, name: str = "FollowUser") -> MetricSample:
        return self._request("POST", name, FOLLOW_PATH, data=edge.to_form())

    def unfollow(self, edge: FollowEdge, name: str = "UnfollowUser") -> MetricSample:
        return self._request("POST", name, UNFOLLOW_PATH, data=edge.to_form())

    def compose(self, post: Post, name: str = "ComposePost") -> MetricSample:
        return self._request("POST", name, COMPOSE_PATH, data=post.to_form())

    def read_home_timeline(
        self, user_id: int, start: int = 0, stop: int = 10, name: str = "ReadHomeTimeline"
    ) -> MetricSample:
        params = {"user_id": user_id, "start": start, "stop": stop}
        return self._request("GET", name, HOME_TIMELINE_PATH, params=params)

    def read_user_timeline(
        self, user_id: int, start: int = 0, stop: int = 10, name: str = "ReadUserTimeline"
    ) -> MetricSample:
        params = {"user_id": user_id, "start": start, "stop": stop}
        return self._request("GET", name, USER_TIMELINE_PATH, params=params)

    def _request(
        self,
        method: str,
        name: str,
        path: str,
        data: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> MetricSample:
        start = time.perf_counter()
        try:
            response = self._http.request(method, path, data=data, params=params)
        except httpx.TimeoutException as e:
            sample = MetricSample(
                operation_name=name,
                status_code=0,
                duration_ms=(time.perf_counter() - start) * 1000,
                success=False,
                timed_out=True,
                method=method,
                error=f"Timeout after {self.timeout}s: {e}",
            )
        except httpx.TransportError as e:
            sample = MetricSample(
                operation_name=name,
                status_code=0,
                duration_ms=(time.perf_counter() - start) * 1000,
                success=False,
                method=method,
                error=f"{type(e).__name__}: {e}",
            )
        else:
            sample = MetricSample(
                operation_name=name,
                status_code=response.status_code,
                duration_ms=(time.perf_counter() - start) * 1000,
                success=response.status_code == 200,
                method=method,
                response_length=len(response.content),
                error=None if response.status_code == 200 else f"Status {response.status_code}",
            )

        if sample.error:
            logger.debug(f"{method} {path} ({name}) failed: {sample.error}")

        self.sink.record(sample)
        return sample
