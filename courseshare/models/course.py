import uuid
from django.db import models
from django.utils import timezone

from courseshare.lookups import CarClass, CourseType, Game, Series, Visibility
from .member import Member


class Course(models.Model):
    """
    A shareable course (custom track) published by a member.

    Fields:
        - id: UUID primary key.
        - name: course name, searched case-insensitively.
        - sharing_code: the in-game sharing code; unique across all courses.
        - course_type: standard (shipped with the game) or community.
        - series / car_class / game: lookup codes used as search constraints.
        - visibility: Public, Friends only or Private.
        - description: optional free text.
        - created_by / created_name: creator and their login name at creation.
        - modified_by / modified_name / modified_at: last successful update.
        - touched_at: last creation or update, secondary sort key of searches.
        - rating: sum of votes, primary sort key of searches.
        - record_version: optimistic lock, starts at 1, +1 per successful update.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=120)
    sharing_code = models.PositiveIntegerField(unique=True)
    course_type = models.IntegerField(choices=CourseType.choices, default=CourseType.CUSTOM)
    series = models.IntegerField(choices=Series.choices, default=Series.ROAD)
    car_class = models.IntegerField(choices=CarClass.choices, default=CarClass.A)
    game = models.IntegerField(choices=Game.choices, default=Game.FH5)
    visibility = models.IntegerField(choices=Visibility.choices, default=Visibility.PUBLIC)
    description = models.CharField(max_length=200, blank=True)

    created_by = models.ForeignKey(Member, related_name="courses", on_delete=models.CASCADE)
    created_name = models.CharField(max_length=60)
    created_at = models.DateTimeField(default=timezone.now)

    modified_by = models.ForeignKey(
        Member,
        related_name="modified_courses",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    modified_name = models.CharField(max_length=60, blank=True)
    modified_at = models.DateTimeField(null=True, blank=True)

    touched_at = models.DateTimeField(default=timezone.now)
    rating = models.FloatField(default=0)
    record_version = models.PositiveIntegerField(default=1)

    class Meta:
        indexes = [
            models.Index(fields=["-rating", "-touched_at"], name="course_rating_recency"),
        ]

    def __str__(self):
        return f"{self.name} ({self.created_name})"
