from marshmallow import EXCLUDE, Schema, fields, validate


class ClaimRequestSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    item_id = fields.Int(required=True, data_key="itemId", validate=validate.Range(min=1))
    claimer_contact = fields.Str(required=True, data_key="claimerContact", validate=validate.Length(min=1, max=255))
