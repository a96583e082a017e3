from marshmallow import Schema, fields

from .item import FoundItemSchema


class MatchNotificationSchema(Schema):
    id = fields.Int(dump_only=True)
    viewed = fields.Bool()
    similarity = fields.Float(allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    found_item = fields.Nested(FoundItemSchema, data_key="foundItem")
