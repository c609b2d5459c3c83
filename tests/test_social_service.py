import pytest

from app.core.exceptions import AlreadyFollowingError, InvalidOperationError, NotFoundError
from app.models.notification import NotificationType
from app.models.user import User
from app.services.notification import NotificationService
from app.services.social import SocialGraphService, reconcile_follow_relations


@pytest.fixture
def social(session):
    return SocialGraphService(session, NotificationService(session))


def test_follow_links_both_users(session, make_user, social):
    alice, bob = make_user("Alice"), make_user("Bob")

    result = social.follow(alice.id, bob.id)

    session.refresh(alice)
    session.refresh(bob)
    assert bob.id in alice.following
    assert alice.id in bob.followers
    assert result.isFollowing is True
    assert result.followersCount == 1
    assert result.followingCount == 1


def test_follow_twice_raises_already_following_and_keeps_state(session, make_user, social):
    alice, bob = make_user("Alice"), make_user("Bob")
    social.follow(alice.id, bob.id)

    with pytest.raises(AlreadyFollowingError):
        social.follow(alice.id, bob.id)

    session.refresh(alice)
    session.refresh(bob)
    assert alice.following == [bob.id]
    assert bob.followers == [alice.id]


def test_follow_self_is_invalid(make_user, social):
    alice = make_user("Alice")
    with pytest.raises(InvalidOperationError):
        social.follow(alice.id, alice.id)


def test_follow_unknown_user_is_not_found(make_user, social):
    alice = make_user("Alice")
    with pytest.raises(NotFoundError):
        social.follow(alice.id, 9999)
    with pytest.raises(NotFoundError):
        social.follow(9999, alice.id)


def test_follow_notifies_target(make_user, social):
    alice, bob = make_user("Alice"), make_user("Bob")
    social.follow(alice.id, bob.id)

    notifications = social.notifications.list_notifications(bob.id)
    assert len(notifications) == 1
    assert notifications[0].type == NotificationType.FOLLOW
    assert notifications[0].from_ == alice.id
    assert notifications[0].text == "Alice started following you"


def test_unfollow_removes_both_sides(session, make_user, social):
    alice, bob = make_user("Alice"), make_user("Bob")
    social.follow(alice.id, bob.id)

    result = social.unfollow(alice.id, bob.id)

    session.refresh(alice)
    session.refresh(bob)
    assert alice.following == []
    assert bob.followers == []
    assert result.isFollowing is False
    assert result.followersCount == 0


def test_unfollow_when_not_following_is_a_noop(session, make_user, social):
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    social.follow(carol.id, bob.id)

    result = social.unfollow(alice.id, bob.id)

    session.refresh(bob)
    assert bob.followers == [carol.id]
    assert result.isFollowing is False
    assert result.followersCount == 1


def test_unfollow_self_is_a_noop(session, make_user, social):
    alice, bob = make_user("Alice"), make_user("Bob")
    social.follow(bob.id, alice.id)

    result = social.unfollow(alice.id, alice.id)

    session.refresh(alice)
    assert alice.followers == [bob.id]
    assert result.isFollowing is False
    assert result.followersCount == 1
    assert result.followingCount == 0


def test_list_followers_keeps_stored_order(make_user, social):
    target = make_user("Target")
    first, second, third = make_user("First"), make_user("Second"), make_user("Third")
    for follower in (second, third, first):
        social.follow(follower.id, target.id)

    names = [summary.name for summary in social.list_followers(target.id)]
    assert names == ["Second", "Third", "First"]

    following = social.list_following(first.id)
    assert [summary.id for summary in following] == [target.id]


def test_list_followers_unknown_user(social):
    with pytest.raises(NotFoundError):
        social.list_followers(12345)


def test_reconcile_repairs_one_sided_relations(session, make_user):
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    # alice -> bob recorded only on alice; carol -> bob recorded only on bob
    alice.following = [bob.id]
    bob.followers = [carol.id]
    session.add(alice)
    session.add(bob)
    session.commit()

    repaired = reconcile_follow_relations(session)

    assert repaired == 2
    bob = session.get(User, bob.id)
    carol = session.get(User, carol.id)
    assert sorted(bob.followers) == sorted([alice.id, carol.id])
    assert carol.following == [bob.id]
    assert reconcile_follow_relations(session) == 0
