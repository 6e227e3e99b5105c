import itertools
import threading
import uuid
from datetime import timedelta
from io import StringIO
from unittest.mock import patch

import requests
from django.apps import apps
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import IntegrityError, OperationalError, connection
from django.db.models import F
from django.test import RequestFactory, SimpleTestCase, TestCase, TransactionTestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from courseshare.analytics import Tracker, track_view
from courseshare.credentials import Credentials
from courseshare.exceptions import (
    CourseNameMissing,
    DuplicateRelation,
    InvalidIdentifier,
    InvalidUser,
    NoData,
    PermissionGuest,
    PermissionNotShared,
    PermissionPrivate,
    RecordChanged,
    SelfReference,
    SharingCodeTaken,
    SystemFailure,
)
from courseshare.lookups import Privacy, RelationType, Role, Visibility
from courseshare.models import Course, Member, Relation, Visit, Vote
from courseshare.permissions import grant
from courseshare.registry import RequestRegistry, client_key
from courseshare.repositories import NO_SHARING_CODE, SearchParams, parse_sharing_code
from courseshare.social import SocialGraph

sharing_codes = itertools.count(100000)


def engine():
    return apps.get_app_config("courseshare")


def make_member(username, role=Role.MEMBER):
    return Member.objects.create_user(username=username, password="testpass123", role=role)


def make_course(owner, name="Goliath", visibility=Visibility.PUBLIC, rating=0, code=None):
    return Course.objects.create(
        name=name,
        sharing_code=code or next(sharing_codes),
        created_by=owner,
        created_name=owner.username,
        visibility=visibility,
        rating=rating,
    )


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


# Permission policy
class GrantTests(SimpleTestCase):
    def setUp(self):
        self.creator = uuid.uuid4()
        self.friend = uuid.uuid4()
        self.stranger = uuid.uuid4()

    def creds(self, user_id, role, friends=()):
        return Credentials(user_id=user_id, login_name="x", role=role, friends=frozenset(friends))

    def assertGranted(self, visibility, credentials):
        self.assertIsNone(grant(visibility, self.creator, credentials))

    def test_precedence_table(self):
        P, F, X = Visibility.PUBLIC, Visibility.FRIENDS, Visibility.PRIVATE
        expected = {
            Role.ADMIN: {
                P: {"friend": None, "stranger": None, "self": None},
                F: {"friend": None, "stranger": None, "self": None},
                X: {"friend": None, "stranger": None, "self": None},
            },
            Role.MEMBER: {
                P: {"friend": None, "stranger": None, "self": None},
                F: {"friend": None, "stranger": PermissionNotShared, "self": None},
                X: {"friend": PermissionPrivate, "stranger": PermissionPrivate, "self": None},
            },
            Role.GUEST: {
                P: {"friend": None, "stranger": None, "self": None},
                F: {"friend": PermissionGuest, "stranger": PermissionGuest, "self": PermissionGuest},
                X: {"friend": PermissionPrivate, "stranger": PermissionPrivate, "self": None},
            },
        }
        callers = {
            "friend": lambda role: self.creds(self.friend, role, [self.creator]),
            "stranger": lambda role: self.creds(self.stranger, role),
            "self": lambda role: self.creds(self.creator, role),
        }
        for role, tiers in expected.items():
            for visibility, outcomes in tiers.items():
                for relation, error in outcomes.items():
                    with self.subTest(role=role.label, visibility=visibility.label, caller=relation):
                        credentials = callers[relation](role)
                        if error is None:
                            self.assertGranted(visibility, credentials)
                        else:
                            with self.assertRaises(error):
                                grant(visibility, self.creator, credentials)

    def test_admin_is_granted_everything(self):
        admin = self.creds(self.stranger, Role.ADMIN)
        for visibility in Visibility:
            self.assertGranted(visibility, admin)

    def test_public_is_granted_to_everyone(self):
        for credentials in (
            Credentials.anonymous(),
            self.creds(self.stranger, Role.GUEST),
            self.creds(self.stranger, Role.MEMBER),
            self.creds(self.creator, Role.MEMBER),
        ):
            self.assertGranted(Visibility.PUBLIC, credentials)

    def test_friends_only_for_members(self):
        self.assertGranted(Visibility.FRIENDS, self.creds(self.creator, Role.MEMBER))
        self.assertGranted(Visibility.FRIENDS, self.creds(self.friend, Role.MEMBER, [self.creator]))
        with self.assertRaises(PermissionNotShared):
            grant(Visibility.FRIENDS, self.creator, self.creds(self.stranger, Role.MEMBER))

    def test_friends_only_is_denied_to_guests_first(self):
        # even a guest that is a friend, or the creator, is told to log in
        for credentials in (
            Credentials.anonymous(),
            self.creds(self.friend, Role.GUEST, [self.creator]),
            self.creds(self.creator, Role.GUEST),
        ):
            with self.assertRaises(PermissionGuest):
                grant(Visibility.FRIENDS, self.creator, credentials)

    def test_private_only_for_creator(self):
        self.assertGranted(Visibility.PRIVATE, self.creds(self.creator, Role.MEMBER))
        self.assertGranted(Visibility.PRIVATE, self.creds(self.creator, Role.GUEST))
        for credentials in (
            self.creds(self.friend, Role.MEMBER, [self.creator]),
            self.creds(self.stranger, Role.MEMBER),
            self.creds(self.stranger, Role.GUEST),
            Credentials.anonymous(),
        ):
            with self.assertRaises(PermissionPrivate):
                grant(Visibility.PRIVATE, self.creator, credentials)


# Request registry
class RequestRegistryTests(SimpleTestCase):
    def setUp(self):
        self.clock = FakeClock()

    def test_refresh_is_not_a_new_view(self):
        registry = RequestRegistry(clock=self.clock)
        self.assertTrue(registry.continue_("1.2.3.4", "course:a"))
        self.assertFalse(registry.continue_("1.2.3.4", "course:a"))
        self.assertTrue(registry.continue_("1.2.3.4", "course:b"))
        self.assertTrue(registry.continue_("1.2.3.4", "course:a"))
        # another client is tracked separately
        self.assertTrue(registry.continue_("5.6.7.8", "course:a"))
        self.assertEqual(len(registry), 2)

    def test_entry_is_refreshed_on_every_request(self):
        registry = RequestRegistry(clock=self.clock)
        registry.continue_("1.2.3.4", "member:x")
        self.clock.now = 42
        registry.continue_("1.2.3.4", "member:x")
        self.assertEqual(registry.get("1.2.3.4").last_accessed, 42)

    def test_flush_below_capacity_keeps_everything(self):
        registry = RequestRegistry(capacity=5, ttl=10, clock=self.clock)
        for i in range(3):
            registry.continue_(f"10.0.0.{i}", "course:a")
        self.clock.now = 1000
        self.assertEqual(registry.flush(), 0)
        self.assertEqual(len(registry), 3)

    def test_flush_at_capacity_keeps_everything(self):
        registry = RequestRegistry(capacity=3, ttl=10, clock=self.clock)
        for i in range(3):
            registry.continue_(f"10.0.0.{i}", "course:a")
        self.clock.now = 1000
        self.assertEqual(registry.flush(), 0)
        self.assertEqual(len(registry), 3)

    def test_flush_above_capacity_drops_only_expired(self):
        registry = RequestRegistry(capacity=2, ttl=10, clock=self.clock)
        for i in range(3):
            registry.continue_(f"10.0.0.{i}", "course:a")
        self.clock.now = 11
        registry.continue_("10.0.0.99", "course:a")

        self.assertEqual(registry.flush(), 3)
        self.assertEqual(len(registry), 1)
        self.assertIsNotNone(registry.get("10.0.0.99"))

    def test_client_key_prefers_forwarded_for(self):
        factory = RequestFactory()
        request = factory.get("/", HTTP_X_FORWARDED_FOR="9.9.9.9, 10.0.0.1", REMOTE_ADDR="10.0.0.1")
        self.assertEqual(client_key(request), "9.9.9.9")
        self.assertEqual(client_key(factory.get("/", REMOTE_ADDR="10.0.0.2")), "10.0.0.2")


# Social graph
class SocialGraphTests(TestCase):
    def setUp(self):
        self.social = engine().social
        self.alice = make_member("alice")
        self.bob = make_member("bob")
        self.carol = make_member("carol")

    def test_friendship_is_stored_once_and_seen_from_both_sides(self):
        self.social.add_friend(self.alice.pk, self.bob.pk)
        self.assertEqual(Relation.objects.count(), 1)

        from_alice = self.social.friends(self.alice.pk)
        from_bob = self.social.friends(self.bob.pk)
        self.assertEqual([(r.reference_id, r.reference_name) for r in from_alice], [(self.bob.pk, "bob")])
        self.assertEqual([(r.reference_id, r.reference_name) for r in from_bob], [(self.alice.pk, "alice")])
        self.assertEqual(from_bob[0].user_name, "bob")
        self.assertEqual(self.social.friend_ids(self.bob.pk), frozenset([self.alice.pk]))

    def test_friends_are_ordered_by_name(self):
        self.social.add_friend(self.alice.pk, self.carol.pk)
        self.social.add_friend(self.bob.pk, self.alice.pk)
        names = [r.reference_name for r in self.social.friends(self.alice.pk)]
        self.assertEqual(names, ["bob", "carol"])

    def test_duplicate_friendship_in_either_direction(self):
        self.social.add_friend(self.alice.pk, self.bob.pk)
        with self.assertRaises(DuplicateRelation):
            self.social.add_friend(self.alice.pk, self.bob.pk)
        with self.assertRaises(DuplicateRelation):
            self.social.add_friend(self.bob.pk, self.alice.pk)
        self.assertEqual(Relation.objects.count(), 1)

    def test_self_reference_is_rejected(self):
        with self.assertRaises(SelfReference):
            self.social.add_friend(self.alice.pk, self.alice.pk)
        with self.assertRaises(SelfReference):
            self.social.follow(self.alice.pk, self.alice.pk)

    def test_unknown_member_cannot_be_added(self):
        with self.assertRaises(InvalidUser):
            self.social.add_friend(self.alice.pk, uuid.uuid4())

    def test_either_friend_may_remove_the_friendship(self):
        self.social.add_friend(self.alice.pk, self.bob.pk)
        self.social.remove_friend(self.bob.pk, self.alice.pk)
        self.assertEqual(self.social.friend_ids(self.alice.pk), frozenset())
        with self.assertRaises(NoData):
            self.social.remove_friend(self.alice.pk, self.bob.pk)

    def test_followers_are_the_inverse_of_following(self):
        self.social.follow(self.alice.pk, self.carol.pk)
        self.social.follow(self.bob.pk, self.carol.pk)

        following = self.social.following(self.alice.pk)
        self.assertEqual([r.reference_name for r in following], ["carol"])
        self.assertEqual(following[0].relation_type, "following")

        followers = self.social.followers(self.carol.pk)
        self.assertEqual([r.reference_name for r in followers], ["alice", "bob"])
        self.assertTrue(all(r.relation_type == "follower" for r in followers))
        self.assertTrue(all(r.user_id == self.carol.pk for r in followers))

        # following is not friendship
        with self.assertRaises(NoData):
            self.social.friends(self.carol.pk)

    def test_unfollow(self):
        self.social.follow(self.alice.pk, self.bob.pk)
        self.social.unfollow(self.alice.pk, self.bob.pk)
        with self.assertRaises(NoData):
            self.social.followers(self.bob.pk)
        with self.assertRaises(NoData):
            self.social.unfollow(self.alice.pk, self.bob.pk)

    def test_friend_list_is_ordered_by_the_other_name_in_both_directions(self):
        social = SocialGraph(limit=20)
        aaa = make_member("aaa")
        for i in range(15):
            social.add_friend(aaa.pk, make_member(f"y{i:02d}").pk)
        for i in range(10):
            social.add_friend(make_member(f"c{i:02d}").pk, aaa.pk)

        names = [r.reference_name for r in social.friends(aaa.pk)]
        expected = [f"c{i:02d}" for i in range(10)] + [f"y{i:02d}" for i in range(10)]
        self.assertEqual(names, expected)
        self.assertTrue(all(r.user_name == "aaa" for r in social.friends(aaa.pk)))

    def test_friend_ids_are_not_capped(self):
        social = SocialGraph(limit=2)
        for name in ("d1", "d2", "d3", "d4"):
            social.add_friend(self.alice.pk, make_member(name).pk)
        self.assertEqual(len(social.friends(self.alice.pk)), 2)
        self.assertEqual(len(social.friend_ids(self.alice.pk)), 4)

    def test_block_is_directed_and_kept_apart(self):
        self.social.block(self.alice.pk, self.bob.pk)
        with self.assertRaises(DuplicateRelation):
            self.social.block(self.alice.pk, self.bob.pk)
        with self.assertRaises(SelfReference):
            self.social.block(self.alice.pk, self.alice.pk)

        blocked = self.social.blocked(self.alice.pk)
        self.assertEqual([r.reference_name for r in blocked], ["bob"])
        self.assertEqual(blocked[0].relation_type, RelationType.BLOCKED)
        with self.assertRaises(NoData):
            self.social.blocked(self.bob.pk)
        # a block is neither a follow nor a friendship
        for listing in (self.social.following, self.social.followers, self.social.friends):
            with self.assertRaises(NoData):
                listing(self.alice.pk)
        self.assertEqual(self.social.friend_ids(self.bob.pk), frozenset())

        self.social.unblock(self.alice.pk, self.bob.pk)
        with self.assertRaises(NoData):
            self.social.unblock(self.alice.pk, self.bob.pk)


# Credentials
class CredentialResolverTests(TestCase):
    def setUp(self):
        self.resolver = engine().credentials

    def test_empty_caller_is_anonymous(self):
        credentials = self.resolver.resolve("")
        self.assertIsNone(credentials.user_id)
        self.assertTrue(credentials.is_guest)
        self.assertEqual(credentials.friends, frozenset())

    def test_unknown_and_malformed_callers(self):
        with self.assertRaises(InvalidUser):
            self.resolver.resolve(str(uuid.uuid4()))
        with self.assertRaises(InvalidIdentifier):
            self.resolver.resolve("not-a-uuid")

    def test_member_with_and_without_friends(self):
        alice = make_member("alice")
        bob = make_member("bob", role=Role.ADMIN)

        credentials = self.resolver.resolve(str(alice.pk))
        self.assertEqual(credentials.login_name, "alice")
        self.assertEqual(credentials.role, Role.MEMBER)
        self.assertEqual(credentials.friends, frozenset())

        engine().social.add_friend(alice.pk, bob.pk)
        credentials = self.resolver.resolve(str(bob.pk))
        self.assertTrue(credentials.is_admin)
        self.assertTrue(credentials.is_friend(alice.pk))

    def test_friend_set_covers_more_than_one_page_of_friends(self):
        caller = make_member("caller")
        for i in range(20):
            engine().social.add_friend(caller.pk, make_member(f"a{i:02d}").pk)
        zed = make_member("zed")
        engine().social.add_friend(zed.pk, caller.pk)
        shared = make_course(zed, "Zed Friends Only", Visibility.FRIENDS)

        credentials = self.resolver.resolve(str(caller.pk))
        self.assertEqual(len(credentials.friends), 21)
        self.assertTrue(credentials.is_friend(zed.pk))
        self.assertIsNone(grant(Visibility.FRIENDS, zed.pk, credentials))

        found = engine().courses.search(SearchParams(term="Zed"), credentials)
        self.assertEqual([c.pk for c in found], [shared.pk])


# Course search
class CourseSearchTests(TestCase):
    def setUp(self):
        self.repo = engine().courses
        self.owner = make_member("owner")
        self.friend = make_member("friend")
        self.stranger = make_member("stranger")
        self.guest = make_member("guest", role=Role.GUEST)
        self.admin = make_member("admin", role=Role.ADMIN)
        engine().social.add_friend(self.owner.pk, self.friend.pk)

        self.public = make_course(self.owner, "Public Sprint", Visibility.PUBLIC, rating=1)
        self.shared = make_course(self.owner, "Friends Circuit", Visibility.FRIENDS, rating=5)
        self.private = make_course(self.owner, "Private Drag", Visibility.PRIVATE, rating=3)

    def search(self, member, **params):
        credentials = engine().credentials.resolve(str(member.pk) if member else "")
        return [c.pk for c in self.repo.search(SearchParams(**params), credentials)]

    def test_scope_per_caller(self):
        self.assertEqual(self.search(None), [self.public.pk])
        self.assertEqual(self.search(self.guest), [self.public.pk])
        self.assertEqual(self.search(self.stranger), [self.public.pk])
        self.assertEqual(self.search(self.friend), [self.shared.pk, self.public.pk])
        self.assertEqual(self.search(self.owner), [self.shared.pk, self.private.pk, self.public.pk])
        self.assertEqual(self.search(self.admin), [self.shared.pk, self.private.pk, self.public.pk])

    def test_term_matches_name_or_sharing_code(self):
        self.assertEqual(self.search(self.owner, term="circuit"), [self.shared.pk])
        self.assertEqual(self.search(self.owner, term=str(self.private.sharing_code)), [self.private.pk])

    def test_non_numeric_term_never_matches_a_code(self):
        self.assertEqual(parse_sharing_code("abc"), NO_SHARING_CODE)
        self.assertEqual(parse_sharing_code("-5"), NO_SHARING_CODE)
        self.assertEqual(parse_sharing_code("99999999999"), NO_SHARING_CODE)
        with self.assertRaises(NoData):
            self.search(self.owner, term="nothing like this")

    def test_constraints(self):
        self.assertEqual(self.search(self.owner, game=self.public.game, series=self.public.series, course_type=1),
                         [self.shared.pk, self.private.pk, self.public.pk])
        with self.assertRaises(NoData):
            self.search(self.owner, course_type=0)

    def test_page_size_caps_results(self):
        for i in range(25):
            make_course(self.stranger, f"Filler {i}")
        self.assertEqual(len(self.search(self.admin)), 20)


# Course update with optimistic locking
class CourseUpdateTests(TestCase):
    def setUp(self):
        self.repo = engine().courses
        self.owner = make_member("owner")
        self.stranger = make_member("stranger")
        self.course = make_course(self.owner, "Original", Visibility.FRIENDS)

    def test_update_increments_version_and_stamps_modifier(self):
        course = self.repo.update(self.course.pk, {"name": "Renamed"}, 1, str(self.owner.pk))
        self.assertEqual(course.name, "Renamed")
        self.assertEqual(course.record_version, 2)
        self.assertEqual(course.modified_by_id, self.owner.pk)
        self.assertEqual(course.modified_name, "owner")
        self.assertGreaterEqual(course.touched_at, self.course.touched_at)

    def test_stale_version_leaves_record_untouched(self):
        with self.assertRaises(RecordChanged):
            self.repo.update(self.course.pk, {"name": "Renamed"}, 7, str(self.owner.pk))
        self.course.refresh_from_db()
        self.assertEqual(self.course.name, "Original")
        self.assertEqual(self.course.record_version, 1)

    def test_two_writers_with_the_same_version(self):
        self.repo.update(self.course.pk, {"name": "First"}, 1, str(self.owner.pk))
        with self.assertRaises(RecordChanged):
            self.repo.update(self.course.pk, {"name": "Second"}, 1, str(self.owner.pk))
        self.course.refresh_from_db()
        self.assertEqual(self.course.name, "First")
        self.assertEqual(self.course.record_version, 2)

    def test_writer_between_read_and_write_wins(self):
        original = self.repo.validate

        def concurrent_save(fields, partial=False):
            # another writer commits after our version check
            Course.objects.filter(pk=self.course.pk).update(record_version=F("record_version") + 1)
            return original(fields, partial)

        with patch.object(self.repo, "validate", side_effect=concurrent_save):
            with self.assertRaises(RecordChanged):
                self.repo.update(self.course.pk, {"name": "Late"}, 1, str(self.owner.pk))

        self.course.refresh_from_db()
        self.assertEqual(self.course.name, "Original")
        self.assertEqual(self.course.record_version, 2)

    def test_update_needs_access(self):
        with self.assertRaises(PermissionNotShared):
            self.repo.update(self.course.pk, {"name": "Mine"}, 1, str(self.stranger.pk))
        with self.assertRaises(PermissionGuest):
            self.repo.update(self.course.pk, {"name": "Mine"}, 1, "")
        with self.assertRaises(NoData):
            self.repo.update(uuid.uuid4(), {"name": "Mine"}, 1, str(self.owner.pk))

    def test_blank_name_is_rejected(self):
        with self.assertRaises(CourseNameMissing):
            self.repo.update(self.course.pk, {"name": "   "}, 1, str(self.owner.pk))

    def test_sharing_code_must_stay_unique(self):
        other = make_course(self.owner, "Other")
        with self.assertRaises(SharingCodeTaken):
            self.repo.update(self.course.pk, {"sharing_code": other.sharing_code}, 1, str(self.owner.pk))

    def test_store_failure_becomes_system_failure(self):
        with patch("courseshare.repositories.Course.objects.filter", side_effect=OperationalError("locked")):
            with self.assertRaises(SystemFailure) as ctx:
                self.repo.get(self.course.pk, engine().credentials.resolve(str(self.owner.pk)))
        self.assertEqual(ctx.exception.provenance, "CourseRepository.get")

    def test_other_integrity_errors_are_not_reported_as_taken_codes(self):
        with patch("courseshare.repositories.Course.objects.create", side_effect=IntegrityError("fk")):
            with self.assertRaises(SystemFailure) as ctx:
                self.repo.create({"name": "Fresh", "sharing_code": 987654}, str(self.owner.pk))
        self.assertEqual(ctx.exception.provenance, "CourseRepository.create")

    def test_course_gone_after_update_is_no_data(self):
        original = Course.objects.filter
        state = {"updated": False}

        def vanishing(*args, **kwargs):
            if "record_version" in kwargs:
                state["updated"] = True
            elif state["updated"]:
                return original(*args, **kwargs).none()
            return original(*args, **kwargs)

        with patch("courseshare.repositories.Course.objects.filter", side_effect=vanishing):
            with self.assertRaises(NoData):
                self.repo.update(self.course.pk, {"name": "Gone"}, 1, str(self.owner.pk))


# Guest role
class GuestRoleTests(TestCase):
    def setUp(self):
        self.repo = engine().courses
        self.owner = make_member("owner")
        self.guest = make_member("visitor", role=Role.GUEST)
        self.course = make_course(self.owner, "Open Track", Visibility.PUBLIC)

    def test_guest_can_read_but_not_create(self):
        credentials = engine().credentials.resolve(str(self.guest.pk))
        self.assertEqual(self.repo.get(self.course.pk, credentials).pk, self.course.pk)
        with self.assertRaises(PermissionGuest):
            self.repo.create({"name": "Mine", "sharing_code": 555555}, str(self.guest.pk))
        self.assertFalse(Course.objects.filter(sharing_code=555555).exists())

    def test_guest_cannot_update_a_public_course(self):
        with self.assertRaises(PermissionGuest):
            self.repo.update(self.course.pk, {"name": "Taken over"}, 1, str(self.guest.pk))
        self.course.refresh_from_db()
        self.assertEqual(self.course.name, "Open Track")
        self.assertEqual(self.course.record_version, 1)

    def test_guest_cannot_comment_or_vote(self):
        with self.assertRaises(PermissionGuest):
            engine().comments.add(self.course.pk, "nice", str(self.guest.pk))
        with self.assertRaises(PermissionGuest):
            engine().votes.cast(self.course.pk, 1, str(self.guest.pk))
        self.assertEqual(Vote.objects.count(), 0)


# HTTP: courses
class CourseAPITests(APITestCase):
    def setUp(self):
        self.owner = make_member("owner")
        self.stranger = make_member("stranger")

    def create(self, **data):
        payload = {"name": "Goliath", "sharingCode": 123456789, "visibilityCode": 0}
        payload.update(data)
        return self.client.post("/api/courses/", payload, format="json")

    def test_create_and_read(self):
        self.client.force_authenticate(user=self.owner)
        resp = self.create()
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["recordVersion"], 1)
        self.assertEqual(resp.data["createdName"], "owner")
        self.assertEqual(resp.data["typeCode"], 1)

        self.client.force_authenticate(user=None)
        resp = self.client.get(f"/api/courses/{resp.data['id']}/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["name"], "Goliath")
        self.assertEqual(resp.data["userVote"], 0)

    def test_create_requires_login(self):
        resp = self.create()
        self.assertIn(resp.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertEqual(Course.objects.count(), 0)

    def test_guest_role_cannot_create(self):
        self.client.force_authenticate(user=make_member("visitor", role=Role.GUEST))
        resp = self.create()
        self.assertEqual(resp.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(resp.data, {"code": 10006, "msg": "user is guest"})
        self.assertEqual(Course.objects.count(), 0)

    def test_domain_errors_use_code_and_message(self):
        self.client.force_authenticate(user=self.owner)
        self.create()

        resp = self.create(name="Another")
        self.assertEqual(resp.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(resp.data, {"code": 10014, "msg": "duplicate sharing code"})

        resp = self.create(name="", sharingCode=42)
        self.assertEqual(resp.data["code"], 10013)

        resp = self.client.post("/api/courses/", {"name": "No code"}, format="json")
        self.assertEqual(resp.data["code"], 10016)

    def test_update_with_record_version(self):
        self.client.force_authenticate(user=self.owner)
        course_id = self.create().data["id"]
        url = f"/api/courses/{course_id}/"

        resp = self.client.patch(url, {"name": "Renamed", "recordVersion": 1}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["recordVersion"], 2)
        self.assertEqual(resp.data["modifiedName"], "owner")

        resp = self.client.patch(url, {"name": "Stale", "recordVersion": 1}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(resp.data, {"code": 10004, "msg": "record changed by another user"})

        resp = self.client.patch(url, {"name": "No version"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_private_course_is_hidden_from_others(self):
        course = make_course(self.owner, visibility=Visibility.PRIVATE)
        self.client.force_authenticate(user=self.stranger)
        resp = self.client.get(f"/api/courses/{course.pk}/")
        self.assertEqual(resp.data, {"code": 10008, "msg": "item is private"})

    def test_missing_course_and_bad_id(self):
        resp = self.client.get(f"/api/courses/{uuid.uuid4()}/")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        resp = self.client.get("/api/courses/abc/")
        self.assertEqual(resp.data, {"code": 10001, "msg": "invalid request"})

    def test_search_endpoint(self):
        make_course(self.owner, "Low", rating=1)
        make_course(self.owner, "High", rating=9)
        make_course(self.owner, "Hidden", Visibility.PRIVATE, rating=20)

        resp = self.client.get("/api/courses/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([c["name"] for c in resp.data], ["High", "Low"])

        resp = self.client.get("/api/courses/", {"search": "zzz"})
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)

        resp = self.client.get("/api/courses/", {"game": "fast"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sharing_code_exists(self):
        course = make_course(self.owner)
        resp = self.client.get(f"/api/courses/sharing/{course.sharing_code}/exists/")
        self.assertEqual(resp.data, {"exists": True})
        resp = self.client.get("/api/courses/sharing/1/exists/")
        self.assertEqual(resp.data, {"exists": False})

    def test_store_failure_is_a_server_problem(self):
        with patch("courseshare.repositories.Course.objects.filter", side_effect=OperationalError("timeout")):
            resp = self.client.get("/api/courses/")
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(resp.data, {"code": 99999, "msg": "server problem"})


# HTTP: comments and votes
class CommentAndVoteAPITests(APITestCase):
    def setUp(self):
        self.owner = make_member("owner")
        self.voter = make_member("voter")
        self.course = make_course(self.owner)

    def test_comments(self):
        url = f"/api/courses/{self.course.pk}/comments/"
        self.assertEqual(self.client.get(url).status_code, status.HTTP_204_NO_CONTENT)

        self.client.force_authenticate(user=self.voter)
        resp = self.client.post(url, {"comment": "great jumps"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["createdName"], "voter")

        resp = self.client.post(url, {"comment": "   "}, format="json")
        self.assertEqual(resp.data["code"], 10017)

        resp = self.client.get(url)
        self.assertEqual([c["comment"] for c in resp.data], ["great jumps"])

    def test_comment_on_private_course(self):
        course = make_course(self.owner, visibility=Visibility.PRIVATE)
        self.client.force_authenticate(user=self.voter)
        resp = self.client.post(f"/api/courses/{course.pk}/comments/", {"comment": "hi"}, format="json")
        self.assertEqual(resp.data["code"], 10008)

    def test_votes_sum_into_rating_without_new_version(self):
        url = f"/api/courses/{self.course.pk}/votes/"
        self.client.force_authenticate(user=self.voter)
        self.assertEqual(self.client.post(url, {"vote": 1}, format="json").data, {"rating": 1})

        self.client.force_authenticate(user=self.owner)
        self.assertEqual(self.client.post(url, {"vote": 1}, format="json").data, {"rating": 2})
        # voting again replaces the earlier vote
        self.assertEqual(self.client.post(url, {"vote": -1}, format="json").data, {"rating": 0})

        self.assertEqual(Vote.objects.filter(course=self.course).count(), 2)
        self.course.refresh_from_db()
        self.assertEqual(self.course.record_version, 1)

        resp = self.client.get(f"/api/courses/{self.course.pk}/")
        self.assertEqual(resp.data["userVote"], -1)

        resp = self.client.post(url, {"vote": 3}, format="json")
        self.assertEqual(resp.data, {"code": 10001, "msg": "invalid request"})


# HTTP: members and relations
class MemberAPITests(APITestCase):
    def setUp(self):
        self.alice = make_member("alice")
        self.bob = make_member("bob")

    def test_signup_and_login(self):
        resp = self.client.post(
            "/api/signup/",
            {"username": "driver1", "email": "driver1@example.com", "password": "12345678"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["roleCode"], Role.MEMBER)

        resp = self.client.post("/api/login/", {"username": "driver1", "password": "12345678"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["loginName"], "driver1")

        resp = self.client.post("/api/login/", {"username": "driver1", "password": "wrong"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_member_detail_counts_fresh_views_only(self):
        url = f"/api/members/{self.alice.pk}/"
        resp = self.client.get(url, REMOTE_ADDR="10.9.0.1")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["loginName"], "alice")

        self.client.get(url, REMOTE_ADDR="10.9.0.1")
        self.assertEqual(Visit.objects.filter(profile_id=str(self.alice.pk)).count(), 1)

        self.client.get(url, REMOTE_ADDR="10.9.0.2")
        self.assertEqual(Visit.objects.filter(profile_id=str(self.alice.pk)).count(), 2)

    def test_unknown_member(self):
        self.assertEqual(self.client.get(f"/api/members/{uuid.uuid4()}/").status_code, status.HTTP_204_NO_CONTENT)

    def test_friends_through_the_api(self):
        self.client.force_authenticate(user=self.alice)
        resp = self.client.post("/api/friends/", {"friendID": str(self.bob.pk)}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        resp = self.client.post("/api/friends/", {"friendID": str(self.bob.pk)}, format="json")
        self.assertEqual(resp.data["code"], 10012)
        resp = self.client.post("/api/friends/", {"friendID": str(self.alice.pk)}, format="json")
        self.assertEqual(resp.data["code"], 10012)

        resp = self.client.get(f"/api/members/{self.bob.pk}/friends/")
        self.assertEqual(resp.data[0]["referenceName"], "alice")
        self.assertEqual(resp.data[0]["relationType"], "friend")

        self.client.force_authenticate(user=self.bob)
        resp = self.client.delete("/api/friends/", {"friendID": str(self.alice.pk)}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        resp = self.client.get(f"/api/members/{self.alice.pk}/friends/")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)

    def test_follow_through_the_api(self):
        self.client.force_authenticate(user=self.alice)
        resp = self.client.post("/api/following/", {"userID": str(self.bob.pk)}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        resp = self.client.get(f"/api/members/{self.bob.pk}/followers/")
        self.assertEqual([r["referenceName"] for r in resp.data], ["alice"])
        resp = self.client.get(f"/api/members/{self.alice.pk}/following/")
        self.assertEqual([r["referenceName"] for r in resp.data], ["bob"])
        resp = self.client.get(f"/api/members/{self.alice.pk}/followers/")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)

    def test_block_through_the_api(self):
        self.client.force_authenticate(user=self.alice)
        self.assertEqual(self.client.get("/api/blocked/").status_code, status.HTTP_204_NO_CONTENT)

        resp = self.client.post("/api/blocked/", {"blockedUserID": str(self.bob.pk)}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        resp = self.client.post("/api/blocked/", {"blockedUserID": str(self.bob.pk)}, format="json")
        self.assertEqual(resp.data["code"], 10012)
        resp = self.client.post("/api/blocked/", {"blockedUserID": str(self.alice.pk)}, format="json")
        self.assertEqual(resp.data["code"], 10012)

        resp = self.client.get("/api/blocked/")
        self.assertEqual([r["referenceName"] for r in resp.data], ["bob"])
        self.assertEqual(resp.data[0]["relationType"], "blocked")
        resp = self.client.get(f"/api/members/{self.alice.pk}/following/")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)

        resp = self.client.delete("/api/blocked/", {"blockedUserID": str(self.bob.pk)}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        resp = self.client.delete("/api/blocked/", {"blockedUserID": str(self.bob.pk)}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data, {"code": 10015, "msg": "no data found"})

    def test_block_requires_login(self):
        resp = self.client.post("/api/blocked/", {"blockedUserID": str(self.bob.pk)}, format="json")
        self.assertIn(resp.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(Relation.objects.exists())

    def test_privacy_hides_a_name_from_other_viewers(self):
        Member.objects.filter(pk=self.alice.pk).update(gamer_tag="AliceGT", privacy=Privacy.LOGIN_NAME)
        Member.objects.filter(pk=self.bob.pk).update(gamer_tag="BobGT", privacy=Privacy.GAMER_TAG)

        self.client.force_authenticate(user=self.bob)
        resp = self.client.get(f"/api/members/{self.alice.pk}/", REMOTE_ADDR="10.8.0.1")
        self.assertEqual((resp.data["loginName"], resp.data["gamerTag"]), ("alice", ""))
        self.assertEqual(resp.data["privacyCode"], Privacy.LOGIN_NAME)

        self.client.force_authenticate(user=None)
        resp = self.client.get(f"/api/members/{self.bob.pk}/", REMOTE_ADDR="10.8.0.2")
        self.assertEqual((resp.data["loginName"], resp.data["gamerTag"]), ("", "BobGT"))

        # the member always sees their own profile in full
        self.client.force_authenticate(user=self.bob)
        resp = self.client.get(f"/api/members/{self.bob.pk}/", REMOTE_ADDR="10.8.0.3")
        self.assertEqual((resp.data["loginName"], resp.data["gamerTag"]), ("bob", "BobGT"))

    def test_signup_takes_a_privacy_setting(self):
        resp = self.client.post(
            "/api/signup/",
            {"username": "quiet", "password": "12345678", "gamer_tag": "Q", "privacy": Privacy.GAMER_TAG},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["privacyCode"], Privacy.GAMER_TAG)
        self.assertEqual(Member.objects.get(username="quiet").privacy, Privacy.GAMER_TAG)

    def test_login_records_last_seen(self):
        resp = self.client.post("/api/login/", {"username": "alice", "password": "testpass123"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data["lastSeen"]), 1)
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.last_seen, resp.data["lastSeen"])

    def test_last_seen_keeps_the_five_latest_logins(self):
        start = timezone.now()
        stamps = [start + timedelta(minutes=i) for i in range(7)]
        for stamp in stamps:
            engine().names.set_last_seen(self.bob.pk, now=stamp)
        self.bob.refresh_from_db()
        self.assertEqual(self.bob.last_seen, [s.isoformat() for s in stamps[-5:]])

    def test_last_seen_store_failure_does_not_break_login(self):
        with patch("courseshare.directory.Member.objects.select_for_update", side_effect=OperationalError("locked")):
            resp = self.client.post("/api/login/", {"username": "alice", "password": "testpass123"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["lastSeen"], [])


# Analytics
class TrackerTests(TestCase):
    def setUp(self):
        self.member = make_member("alice")

    @patch("courseshare.analytics.requests.post")
    def test_visit_is_stored_and_sent(self, mock_post):
        tracker = Tracker(url="http://influx:8086/", org="org", bucket="visits", token="secret")
        tracker.save_visitor("course", "abc", self.member.pk)

        self.assertEqual(tracker.visitor_count("course", "abc"), 1)
        mock_post.assert_called_once()
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "http://influx:8086/api/v2/write")
        self.assertEqual(kwargs["params"]["bucket"], "visits")
        self.assertEqual(kwargs["headers"]["Authorization"], "Token secret")
        self.assertTrue(kwargs["data"].startswith(b"visits,profileType=course,profileID=abc "))

    @patch("courseshare.analytics.requests.post", side_effect=requests.ConnectionError("down"))
    def test_unreachable_endpoint_is_not_an_error(self, mock_post):
        Tracker(url="http://influx:8086", org="", bucket="", token="").save_visitor("member", "x")
        self.assertEqual(Visit.objects.count(), 1)

    @patch("courseshare.analytics.requests.post")
    def test_without_url_nothing_is_sent(self, mock_post):
        Tracker(url="", org="", bucket="", token="").save_visitor("member", "x")
        mock_post.assert_not_called()

    def test_track_view_skips_refresh(self):
        registry = RequestRegistry(clock=FakeClock())
        tracker = Tracker(url="", org="", bucket="", token="")
        request = RequestFactory().get("/", REMOTE_ADDR="10.0.0.5")
        request.user = self.member

        self.assertTrue(track_view(request, registry, tracker, "course", "c1"))
        self.assertFalse(track_view(request, registry, tracker, "course", "c1"))
        self.assertEqual(tracker.visitor_count("course", "c1"), 1)


# Management command
class SetRoleCommandTests(TestCase):
    def test_set_role(self):
        member = make_member("bob")
        out = StringIO()
        call_command("setrole", "bob", "admin", stdout=out)
        self.assertIn("bob is now Admin", out.getvalue())
        member.refresh_from_db()
        self.assertEqual(member.role, Role.ADMIN)

    def test_unknown_member(self):
        with self.assertRaises(CommandError):
            call_command("setrole", "nobody", "guest")


# Optimistic lock under real concurrency
class ConcurrentUpdateTests(TransactionTestCase):
    writers = 4

    def test_one_writer_wins_per_version(self):
        owner = make_member("owner")
        course = make_course(owner, "Contested")
        barrier = threading.Barrier(self.writers)
        outcomes = []
        outcomes_lock = threading.Lock()

        def write(i):
            try:
                barrier.wait(timeout=10)
                engine().courses.update(course.pk, {"name": f"Writer {i}"}, 1, str(owner.pk))
                outcome = "ok"
            except RecordChanged:
                outcome = "changed"
            except Exception as e:
                outcome = repr(e)
            finally:
                connection.close()
            with outcomes_lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=write, args=(i,)) for i in range(self.writers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        self.assertEqual(sorted(outcomes), ["changed"] * (self.writers - 1) + ["ok"])
        course.refresh_from_db()
        self.assertEqual(course.record_version, 2)
        self.assertTrue(course.name.startswith("Writer "))
