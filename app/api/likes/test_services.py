# app/api/likes/test_services.py
"""
Like counter and like notification tests

Usage: python -m pytest app/api/likes/test_services.py -v
"""

from firebase_admin import messaging

from app.models.event import EventType


def _like(name='Anita Devi', **fields):
    data = {
        'name': name,
        'username': 'anita',
        'profileImageUrl': 'https://cdn.example.com/anita.jpg',
        'role': 'FARMER',
        'verificationStatus': 'VERIFIED'
    }
    data.update(fields)
    return data


def test_like_and_unlike_keep_counter_paired(store, fire, seed_user, seed_post):
    seed_user('ravi')
    seed_post('p1', 'ravi')

    fire(EventType.CREATED, 'posts/p1/likes/anita', after=_like())
    fire(EventType.CREATED, 'posts/p1/likes/suresh', after=_like(name='Suresh'))
    assert store.docs['posts/p1']['likesCount'] == 2

    fire(EventType.DELETED, 'posts/p1/likes/anita', before=_like())
    assert store.docs['posts/p1']['likesCount'] == 1


def test_like_notifies_post_author(store, fire, seed_user, seed_post):
    seed_user('ravi')
    seed_post('p1', 'ravi')

    event = fire(EventType.CREATED, 'posts/p1/likes/anita', after=_like())

    notification = store.docs[f"users/ravi/notifications/{event.event_id}"]
    assert notification['type'] == 'like'
    assert notification['actorId'] == 'anita'
    assert notification['actorName'] == 'Anita Devi'
    assert notification['actorUsername'] == 'anita'
    assert notification['actorRole'] == 'FARMER'
    assert notification['actorVerificationStatus'] == 'VERIFIED'
    assert notification['postId'] == 'p1'
    assert notification['commentId'] is None
    assert notification['postImageUrl'] == 'https://cdn.example.com/p1.jpg'
    assert notification['isRead'] is False
    assert notification['createdAt'] is not None


def test_self_like_is_counted_but_not_notified(store, fire, seed_user, seed_post, push_sender):
    seed_user('ravi', fcmToken='ravi-token')
    seed_post('p1', 'ravi')

    fire(EventType.CREATED, 'posts/p1/likes/ravi', after=_like(name='Ravi'))

    assert store.docs['posts/p1']['likesCount'] == 1
    assert store.ids('users/ravi/notifications') == []
    assert push_sender.messages == []


def test_like_sends_push_to_author_device(store, fire, seed_user, seed_post, push_sender):
    seed_user('ravi', fcmToken='ravi-token', notificationsEnabled=True)
    seed_post('p1', 'ravi')

    event = fire(EventType.CREATED, 'posts/p1/likes/anita', after=_like())

    assert len(push_sender.messages) == 1
    message = push_sender.messages[0]
    assert isinstance(message, messaging.Message)
    assert message.token == 'ravi-token'
    assert message.notification.title == 'New like'
    assert message.notification.body == 'Anita Devi liked your post'
    assert message.data == {'type': 'like', 'postId': 'p1', 'notificationId': event.event_id}


def test_push_failure_does_not_fail_the_handler(store, fire, seed_user, seed_post, push_sender, services):
    seed_user('ravi', fcmToken='ravi-token')
    seed_post('p1', 'ravi')
    push_sender.error = RuntimeError('FCM unavailable')

    event = fire(EventType.CREATED, 'posts/p1/likes/anita', after=_like())

    assert store.docs['posts/p1']['likesCount'] == 1
    assert f"users/ravi/notifications/{event.event_id}" in store.docs
    assert services['push'].stats['failed'] == 1


def test_unregistered_token_is_cleared(store, fire, seed_user, seed_post, push_sender):
    seed_user('ravi', fcmToken='stale-token')
    seed_post('p1', 'ravi')
    push_sender.error = messaging.UnregisteredError('Requested entity was not found.')

    fire(EventType.CREATED, 'posts/p1/likes/anita', after=_like())

    assert store.docs['users/ravi']['fcmToken'] is None


def test_no_push_when_notifications_disabled(store, fire, seed_user, seed_post, push_sender):
    seed_user('ravi', fcmToken='ravi-token', notificationsEnabled=False)
    seed_post('p1', 'ravi')

    event = fire(EventType.CREATED, 'posts/p1/likes/anita', after=_like())

    assert f"users/ravi/notifications/{event.event_id}" in store.docs
    assert push_sender.messages == []


def test_actor_falls_back_to_user_profile(store, fire, seed_user, seed_post):
    seed_user('ravi')
    seed_user('anita', name='Anita from profile', username='anita_k')
    seed_post('p1', 'ravi')

    event = fire(EventType.CREATED, 'posts/p1/likes/anita', after={'likedAt': None})

    notification = store.docs[f"users/ravi/notifications/{event.event_id}"]
    assert notification['actorName'] == 'Anita from profile'
    assert notification['actorUsername'] == 'anita_k'


def test_like_on_missing_post_is_benign(store, fire):
    fire(EventType.CREATED, 'posts/gone/likes/anita', after=_like())
    fire(EventType.DELETED, 'posts/gone/likes/anita', before=_like())

    assert 'posts/gone' not in store.docs
    assert [path for path in store.docs if '/notifications/' in path] == []


def test_redelivered_like_counts_and_notifies_once(store, fire, seed_user, seed_post, push_sender):
    seed_user('ravi', fcmToken='ravi-token')
    seed_post('p1', 'ravi')

    fire(EventType.CREATED, 'posts/p1/likes/anita', after=_like(), event_id='evt-like-1')
    fire(EventType.CREATED, 'posts/p1/likes/anita', after=_like(), event_id='evt-like-1')

    assert store.docs['posts/p1']['likesCount'] == 1
    assert store.ids('users/ravi/notifications') == ['evt-like-1']
    assert len(push_sender.messages) == 1
