from datetime import datetime, timedelta

import pytest

from app.core.exceptions import NotFoundError
from app.models.blog import BlogStatus, Comment
from app.services.profile import ProfileService, engagement_rate, top_category


@pytest.mark.parametrize(
    "categories, expected",
    [
        ([], "N/A"),
        (["Tech"], "Tech"),
        (["Tech", "Design", "Tech"], "Tech"),
        (["Design", "Tech", "Tech", "Design"], "Design"),
    ],
)
def test_top_category(categories, expected):
    assert top_category(categories) == expected


def test_engagement_rate():
    assert engagement_rate(0, 0, 0) == 0.0
    assert engagement_rate(3, 5, 4) == 2.0


def test_public_profile_counts_published_posts_only(session, make_user, make_blog):
    alice, bob = make_user("Alice", bio="Writes about code"), make_user("Bob")
    start = datetime(2024, 1, 1)
    make_blog(alice, "Tech", views=10, created_at=start)
    make_blog(alice, "Tech", views=5, created_at=start + timedelta(days=1))
    newest = make_blog(alice, "Design", views=1, created_at=start + timedelta(days=2))
    make_blog(alice, "Design", views=100, status=BlogStatus.DRAFT, created_at=start + timedelta(days=3))
    session.add(Comment(blog_id=newest.id, user_id=bob.id, text="Nice"))
    session.commit()

    profile = ProfileService(session).get_public_profile(alice.id)

    assert profile.name == "Alice"
    assert profile.bio == "Writes about code"
    assert profile.postCount == 3
    assert profile.totalViews == 16
    assert profile.topCategory == "Tech"
    assert profile.isFollowing is False
    assert [b.id for b in profile.blogs][0] == newest.id
    assert profile.blogs[0].commentsCount == 1
    assert all(b.status == BlogStatus.PUBLISHED for b in profile.blogs)


def test_public_profile_without_posts(session, make_user):
    alice = make_user("Alice")

    profile = ProfileService(session).get_public_profile(alice.id)

    assert profile.postCount == 0
    assert profile.totalViews == 0
    assert profile.topCategory == "N/A"
    assert profile.blogs == []


def test_public_profile_reports_follow_state(session, make_user):
    bob = make_user("Bob")
    alice = make_user("Alice", followers=[bob.id])
    bob.following = [alice.id]
    session.add(bob)
    session.commit()

    service = ProfileService(session)
    assert service.get_public_profile(alice.id, requesting_user_id=bob.id).isFollowing is True
    assert service.get_public_profile(alice.id, requesting_user_id=alice.id).isFollowing is False
    assert service.get_public_profile(alice.id).followers == 1


def test_public_profile_unknown_user(session):
    with pytest.raises(NotFoundError):
        ProfileService(session).get_public_profile(42)


def test_own_stats_include_drafts(session, make_user, make_blog):
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    first = make_blog(alice, "Tech", views=7, likes=[bob.id, carol.id])
    make_blog(alice, "Tech", views=3, status=BlogStatus.DRAFT)
    session.add(Comment(blog_id=first.id, user_id=bob.id, text="Great"))
    session.add(Comment(blog_id=first.id, user_id=carol.id, text="Agreed"))
    session.commit()

    stats = ProfileService(session).get_own_stats(alice.id)

    assert stats.totalPosts == 2
    assert stats.totalViews == 10
    assert stats.totalLikes == 2
    assert stats.totalComments == 2
    assert stats.engagementRate == 2.0


def test_own_stats_without_posts(session, make_user):
    alice = make_user("Alice")

    stats = ProfileService(session).get_own_stats(alice.id)

    assert stats.totalPosts == 0
    assert stats.engagementRate == 0.0


def test_recent_activity(session, make_user, make_blog):
    alice, bob = make_user("Alice"), make_user("Bob")
    start = datetime(2024, 1, 1)
    own = [make_blog(alice, "Tech", title=f"Post {i}", created_at=start + timedelta(days=i)) for i in range(7)]
    liked = make_blog(bob, "Design", title="Liked", likes=[alice.id])
    commented = make_blog(bob, "Design", title="Commented")
    session.add(Comment(blog_id=commented.id, user_id=alice.id, text="first"))
    session.add(Comment(blog_id=commented.id, user_id=alice.id, text="second"))
    session.commit()

    activity = ProfileService(session).get_recent_activity(alice.id)

    assert [item.title for item in activity.recentPosts] == [f"Post {i}" for i in (6, 5, 4, 3, 2)]
    assert [item.id for item in activity.likedPosts] == [liked.id]
    assert [item.id for item in activity.commentedPosts] == [commented.id]
    assert own[0].id not in [item.id for item in activity.recentPosts]


def test_recent_activity_matches_liker_ids_exactly(session, make_user, make_blog):
    alice, bob = make_user("Alice"), make_user("Bob")
    lookalike = int(f"{alice.id}{alice.id}")
    make_blog(bob, "Tech", title="Liked by someone else", likes=[lookalike, bob.id])
    liked = make_blog(bob, "Tech", title="Liked by Alice", likes=[bob.id, alice.id])

    activity = ProfileService(session).get_recent_activity(alice.id)

    assert [item.id for item in activity.likedPosts] == [liked.id]
