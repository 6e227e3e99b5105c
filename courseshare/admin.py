from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import Member
from .models import Relation
from .models import Course
from .models import Comment
from .models import Vote
from .models import Visit


class MemberAdmin(UserAdmin):
    list_display = ('id', 'username', 'role', 'language', 'gamer_tag', 'is_active')
    list_filter = ('role', 'is_active')
    fieldsets = UserAdmin.fieldsets + (
        ('Profile', {'fields': ('role', 'language', 'gamer_tag', 'privacy', 'last_seen')}),
    )

# Register Member with Django's UserAdmin to keep password hashing in /admin
admin.site.register(Member, MemberAdmin)


@admin.register(Relation)
class RelationAdmin(admin.ModelAdmin):
    list_display = ['user_name', 'relation_type', 'reference_name', 'created_at']
    list_filter = ['relation_type']
    search_fields = ['user_name', 'reference_name']


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("name", "sharing_code", "created_name", "visibility", "rating", "record_version", "touched_at")
    search_fields = ("name", "sharing_code", "description")
    list_filter = ("visibility", "game", "series", "course_type")
    readonly_fields = ("record_version", "rating")


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = [field.name for field in Comment._meta.fields]


@admin.register(Vote)
class VoteAdmin(admin.ModelAdmin):
    list_display = ('id', 'member', 'course', 'value', 'voted_at')
    search_fields = ('course__name', 'member__username')
    list_filter = ('voted_at',)


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = ('profile_type', 'profile_id', 'visitor', 'visited_at')
    list_filter = ('profile_type',)
