"""Tests for the wrk2-api HTTP client"""
import httpx

from loadgen.models import FollowEdge, Post, SyntheticUser


def _user():
    return SyntheticUser(
        user_id=123,
        username="user_123_1700000000000_0",
        first_name="FirstName123",
        last_name="LastName123",
        password="password123",
    )


class TestEndpoints:
    """Test each endpoint's path, method and encoding"""

    def test_register_posts_form(self, make_client, stub_server, sink):
        """Test registration is a form-encoded POST"""
        client = make_client(stub_server)
        sample = client.register(_user())

        request = stub_server.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/wrk2-api/user/register"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert stub_server.form(0) == {
            "user_id": "123",
            "username": "user_123_1700000000000_0",
            "first_name": "FirstName123",
            "last_name": "LastName123",
            "password": "password123",
        }
        assert sample.operation_name == "RegisterUser"
        assert sample.method == "POST"
        assert sample.success is True
        assert sink.samples == [sample]

    def test_follow_and_unfollow(self, make_client, stub_server):
        """Test follow edges are sent as user_id/followee_id"""
        client = make_client(stub_server)
        client.follow(FollowEdge(follower_id=1, followee_id=123))
        client.unfollow(FollowEdge(follower_id=5, followee_id=6))

        assert stub_server.paths == ["/wrk2-api/user/follow", "/wrk2-api/user/unfollow"]
        assert stub_server.form(0) == {"user_id": "1", "followee_id": "123"}
        assert stub_server.form(1) == {"user_id": "5", "followee_id": "6"}

    def test_compose_sends_json_media_lists(self, make_client, stub_server):
        """Test media_ids and media_types travel as JSON arrays"""
        client = make_client(stub_server)
        client.compose(Post(user_id=123, username="u", post_type=1, text="hi @user0"))

        assert stub_server.paths == ["/wrk2-api/post/compose"]
        form = stub_server.form(0)
        assert form["media_ids"] == "[]"
        assert form["media_types"] == "[]"
        assert form["text"] == "hi @user0"
        assert form["post_type"] == "1"

    def test_timeline_reads_use_query_params(self, make_client, stub_server):
        """Test timeline reads pass user_id, start and stop"""
        client = make_client(stub_server)
        client.read_home_timeline(10, 0, 20)
        client.read_user_timeline(11)

        home, user = stub_server.requests
        assert home.method == "GET"
        assert home.url.path == "/wrk2-api/home-timeline/read"
        assert dict(home.url.params) == {"user_id": "10", "start": "0", "stop": "20"}
        assert user.url.path == "/wrk2-api/user-timeline/read"
        assert dict(user.url.params) == {"user_id": "11", "start": "0", "stop": "10"}

    def test_custom_operation_name(self, make_client, stub_server):
        """Test callers can rename the operation"""
        sample = make_client(stub_server).register(_user(), name="RegisterSeedUser")
        assert sample.operation_name == "RegisterSeedUser"


class TestFailures:
    """Test failures become samples instead of exceptions"""

    def test_server_error_is_recorded(self, make_client, server_factory, sink):
        """Test a 503 is a failed sample"""
        client = make_client(server_factory(default_status=503))
        sample = client.read_home_timeline(1)
        assert sample.status_code == 503
        assert sample.success is False
        assert sample.timed_out is False
        assert sample.error == "Status 503"
        assert sink.samples == [sample]

    def test_timeout_is_recorded(self, make_client, sink):
        """Test a timeout records status 0 and timed_out"""
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        client = make_client(handler, timeout=0.5)
        sample = client.compose(Post(user_id=1, username="u", text="t"))

        assert sample.status_code == 0
        assert sample.success is False
        assert sample.timed_out is True
        assert "Timeout after 0.5s" in sample.error
        assert sink.samples == [sample]

    def test_connection_error_is_recorded(self, make_client, sink):
        """Test a refused connection records status 0 without timed_out"""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        sample = make_client(handler).follow(FollowEdge(follower_id=1, followee_id=2))
        assert sample.status_code == 0
        assert sample.success is False
        assert sample.timed_out is False
        assert "ConnectError" in sample.error

    def test_duration_is_measured(self, make_client, stub_server):
        """Test durations are non-negative milliseconds"""
        sample = make_client(stub_server).read_user_timeline(1)
        assert sample.duration_ms >= 0
        assert sample.response_length == len("Success")
