from django.db import models

from .member import Member
from .course import Course


class Vote(models.Model):
    """
    One member's up (+1) or down (-1) vote on a course.

    Notes:
        - A member votes at most once per course; voting again replaces the value.
        - Course.rating holds the sum of all votes.
    """
    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["course", "member"], name="one_vote_per_member"),
        ]

    course = models.ForeignKey(Course, related_name="votes", on_delete=models.CASCADE)
    member = models.ForeignKey(Member, related_name="votes", on_delete=models.CASCADE)
    value = models.SmallIntegerField()
    voted_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.member_id} voted {self.value:+d} on {self.course_id}"
