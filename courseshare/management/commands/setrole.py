from django.core.management.base import BaseCommand, CommandError

from courseshare.lookups import Role
from courseshare.models import Member

ROLE_NAMES = {
    "guest": Role.GUEST,
    "member": Role.MEMBER,
    "admin": Role.ADMIN,
}


class Command(BaseCommand):
    help = """
    Change the role of a member.

    - guest: may only see public courses and cannot write
    - member: sees public, own and friends' courses
    - admin: sees and may edit every course
    """

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument("role", choices=sorted(ROLE_NAMES))

    def handle(self, *args, **options):
        username = options["username"]
        role = ROLE_NAMES[options["role"]]

        updated = Member.objects.filter(username=username).update(role=role)
        if not updated:
            raise CommandError(f"No member named {username}")

        self.stdout.write(self.style.SUCCESS(
            f"{username} is now {Role(role).label}"
        ))
