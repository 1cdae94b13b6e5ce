"""Tests for synthetic user and post generation"""
import random

from loadgen.generators import (
    DATASET_USER_COUNT,
    HEAVY_MENTION_COUNT,
    LOREM,
    cpu_intensive_operation,
    generate_post,
    generate_user,
    random_dataset_user_id,
)


class TestGenerateUser:
    """Test synthetic identities"""

    def test_user_fields(self):
        """Test that every field is derived from the id"""
        user = generate_user(random.Random(7))
        assert user.user_id >= 0
        assert user.username.startswith(f"user_{user.user_id}_")
        assert user.first_name == f"FirstName{user.user_id}"
        assert user.last_name == f"LastName{user.user_id}"
        assert user.password == f"password{user.user_id}"

    def test_usernames_unique_in_large_batch(self):
        """Test usernames do not collide across many draws"""
        users = [generate_user() for _ in range(5000)]
        usernames = {user.username for user in users}
        assert len(usernames) == len(users)
        assert all(user.username for user in users)
        assert all(user.user_id >= 0 for user in users)

    def test_same_seed_still_gives_unique_usernames(self):
        """Test the nonce separates users even when the ids repeat"""
        first = generate_user(random.Random(1))
        second = generate_user(random.Random(1))
        assert first.user_id == second.user_id
        assert first.username != second.username


class TestGeneratePost:
    """Test compose payloads"""

    def test_regular_post(self):
        """Test a regular post mentions the author and carries no media"""
        user = generate_user()
        post = generate_post(user)
        assert post.user_id == user.user_id
        assert post.username == user.username
        assert post.post_type in (0, 1, 2)
        assert post.text.startswith(f"This is a test post from user {user.username} at ")
        assert post.media_ids == []
        assert post.media_types == []

    def test_heavy_post_is_padded(self):
        """Test heavy posts add mentions and filler text"""
        user = generate_user()
        regular = generate_post(user)
        heavy = generate_post(user, heavy=True)

        assert heavy.text.startswith("@user0 @user1 ")
        assert heavy.text.count("@user") == HEAVY_MENTION_COUNT
        assert LOREM in heavy.text
        assert len(heavy.text) > len(regular.text) + 2000

    def test_post_types_cover_all_values(self):
        """Test all three post types are drawn"""
        rng = random.Random(3)
        user = generate_user(rng)
        types = {generate_post(user, rng=rng).post_type for _ in range(200)}
        assert types == {0, 1, 2}


class TestHelpers:
    """Test id and CPU helpers"""

    def test_dataset_user_ids_in_range(self):
        """Test dataset ids stay within the preloaded graph"""
        rng = random.Random(11)
        ids = [random_dataset_user_id(rng) for _ in range(5000)]
        assert min(ids) >= 1
        assert max(ids) <= DATASET_USER_COUNT

    def test_cpu_intensive_operation(self):
        """Test the busy loop is deterministic"""
        assert cpu_intensive_operation(0) == 0.0
        assert cpu_intensive_operation(500) == cpu_intensive_operation(500)
