from django.db import models

from courseshare.lookups import RelationType, ReferenceType
from .member import Member


class Relation(models.Model):
    """
    A directed pointer from one member to another, tagged with its kind.

    Friendship is undirected and stored as ONE row per pair; which member ends
    up in `user` only reflects who added the friend. Following is directed and
    also stored once; followers are read from the same rows by `reference`.

    Fields:
        - user / user_name: the member that created the relation.
        - reference / reference_name: the related member.
        - reference_type: kind of referenced object (always "user" here).
        - relation_type: "friend" or "following".
        - created_at: when the relation was stored.
    """
    user = models.ForeignKey(Member, related_name="relations", on_delete=models.CASCADE, db_index=True)
    user_name = models.CharField(max_length=60)
    reference = models.ForeignKey(Member, related_name="referenced_by", on_delete=models.CASCADE, db_index=True)
    reference_name = models.CharField(max_length=60)
    reference_type = models.CharField(max_length=20, choices=ReferenceType.choices, default=ReferenceType.USER)
    relation_type = models.CharField(max_length=20, choices=RelationType.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "reference", "relation_type"],
                name="unique_relation_per_direction",
            ),
        ]

    def __str__(self):
        return f"{self.user_name} -{self.relation_type}-> {self.reference_name}"
