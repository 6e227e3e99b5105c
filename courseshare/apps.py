from django.apps import AppConfig
from django.conf import settings


class CourseshareConfig(AppConfig):
    """
    Owns the per-process collaborators of the engine.

    The request registry is the only in-process shared mutable structure; it
    is created once here and handed to the views by reference. The stores are
    stateless and wired through their constructors.
    """
    default_auto_field = "django.db.models.BigAutoField"
    name = "courseshare"

    def ready(self):
        from courseshare.analytics import Tracker
        from courseshare.credentials import CredentialResolver
        from courseshare.directory import MemberDirectory
        from courseshare.registry import RequestRegistry
        from courseshare.repositories import CommentRepository, CourseRepository, VoteRepository
        from courseshare.social import SocialGraph

        self.registry = RequestRegistry(
            capacity=getattr(settings, "REQUEST_REGISTRY_CAPACITY", 5000),
            ttl=getattr(settings, "REQUEST_REGISTRY_TTL", 15 * 60),
        )
        self.tracker = Tracker()

        self.names = MemberDirectory()
        self.social = SocialGraph(names=self.names)
        self.credentials = CredentialResolver(self.social)
        self.courses = CourseRepository(self.credentials, self.names)
        self.comments = CommentRepository(self.courses)
        self.votes = VoteRepository(self.courses)
