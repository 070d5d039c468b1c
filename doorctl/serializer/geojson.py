"""
GeoJSON Schema
--------------

Implements serializers for the GeoJSON geometries the
api uses to communicate locations (such as the front door).
"""
from enum import Enum

from marshmallow import Schema, validates_schema, ValidationError
from marshmallow.fields import List, Float

from doorctl.serializer.fields import EnumField


class GeometryType(str, Enum):
    POINT = "Point"


class Geometry(Schema):
    type = EnumField(GeometryType, required=True)
    coordinates = List(Float(), required=True)

    @validates_schema
    def assert_point_coordinates(self, data, **kwargs):
        if data["type"] == GeometryType.POINT and len(data["coordinates"]) != 2:
            raise ValidationError("A point must have exactly two coordinates (longitude, latitude).")
