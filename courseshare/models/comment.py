import uuid
from django.db import models

from .member import Member
from .course import Course


class Comment(models.Model):
    """
    Represents a comment made by a member on a course.

    Fields:
      - course: the commented course
      - created_by / created_name: author of the comment
      - comment: text body
      - created_at: timestamp
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="comments")
    created_by = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="comments")
    created_name = models.CharField(max_length=60)
    comment = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Comment by {self.created_name} on {self.course_id}"
