from rest_framework import serializers
from courseshare.lookups import CarClass, Game, Series, Visibility
from courseshare.models import Course


class CourseSerializer(serializers.ModelSerializer):
    """
    Full course shape used for detail, create and update.

    Codes are written as integers and echoed with their lookup text.
    ``recordVersion`` is read back on every response and must be sent
    unchanged with an update; a mismatch means someone else saved first.
    """
    id             = serializers.UUIDField(read_only=True)
    sharingCode    = serializers.IntegerField(source="sharing_code", required=False)
    typeCode       = serializers.IntegerField(source="course_type", read_only=True)
    typeText       = serializers.CharField(source="get_course_type_display", read_only=True)
    seriesCode     = serializers.ChoiceField(source="series", choices=Series.choices, required=False)
    seriesText     = serializers.CharField(source="get_series_display", read_only=True)
    carClassCode   = serializers.ChoiceField(source="car_class", choices=CarClass.choices, required=False)
    carClassText   = serializers.CharField(source="get_car_class_display", read_only=True)
    gameCode       = serializers.ChoiceField(source="game", choices=Game.choices, required=False)
    gameText       = serializers.CharField(source="get_game_display", read_only=True)
    visibilityCode = serializers.ChoiceField(source="visibility", choices=Visibility.choices, required=False)
    visibilityText = serializers.CharField(source="get_visibility_display", read_only=True)
    createdID      = serializers.UUIDField(source="created_by_id", read_only=True)
    createdName    = serializers.CharField(source="created_name", read_only=True)
    createdTS      = serializers.DateTimeField(source="created_at", read_only=True)
    modifiedID     = serializers.UUIDField(source="modified_by_id", read_only=True)
    modifiedName   = serializers.CharField(source="modified_name", read_only=True)
    modifiedTS     = serializers.DateTimeField(source="modified_at", read_only=True)
    touchedTS      = serializers.DateTimeField(source="touched_at", read_only=True)
    recordVersion  = serializers.IntegerField(source="record_version", required=False, min_value=1)

    class Meta:
        model = Course
        fields = [
            "id",
            "name",
            "sharingCode",
            "typeCode",
            "typeText",
            "seriesCode",
            "seriesText",
            "carClassCode",
            "carClassText",
            "gameCode",
            "gameText",
            "visibilityCode",
            "visibilityText",
            "description",
            "createdID",
            "createdName",
            "createdTS",
            "modifiedID",
            "modifiedName",
            "modifiedTS",
            "touchedTS",
            "rating",
            "recordVersion",
        ]
        read_only_fields = ["rating"]
        extra_kwargs = {
            "name": {"allow_blank": True, "required": False},
            "description": {"required": False},
        }


class CourseListItemSerializer(serializers.ModelSerializer):
    """Reduced shape for search results."""
    id           = serializers.UUIDField(read_only=True)
    createdID    = serializers.UUIDField(source="created_by_id")
    createdName  = serializers.CharField(source="created_name")
    sharingCode  = serializers.IntegerField(source="sharing_code")
    seriesCode   = serializers.IntegerField(source="series")
    seriesText   = serializers.CharField(source="get_series_display")
    carClassCode = serializers.IntegerField(source="car_class")
    carClassText = serializers.CharField(source="get_car_class_display")
    gameCode     = serializers.IntegerField(source="game")
    gameText     = serializers.CharField(source="get_game_display")

    class Meta:
        model = Course
        fields = [
            "id",
            "createdID",
            "createdName",
            "rating",
            "name",
            "sharingCode",
            "seriesCode",
            "seriesText",
            "carClassCode",
            "carClassText",
            "gameCode",
            "gameText",
        ]
