from django.db import models

from .member import Member


class Visit(models.Model):
    """A fresh (non-refresh) view of a member profile or a course."""
    profile_type = models.CharField(max_length=20)
    profile_id = models.CharField(max_length=64, db_index=True)
    visitor = models.ForeignKey(Member, related_name="visits", on_delete=models.SET_NULL, null=True, blank=True)
    visited_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.profile_type}:{self.profile_id} @ {self.visited_at}"
