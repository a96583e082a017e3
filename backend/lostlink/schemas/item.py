from marshmallow import EXCLUDE, Schema, fields, pre_load, validate

_lat = validate.Range(min=-90, max=90)
_lng = validate.Range(min=-180, max=180)


class _FormSchema(Schema):
    """Accepts JSON bodies and flattened multipart forms alike; blank strings count as missing."""

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def _blank_to_none(self, data, **kwargs):
        return {k: (None if isinstance(v, str) and not v.strip() else v) for k, v in data.items()}


class LostReportSchema(_FormSchema):
    description = fields.Str(required=True, validate=validate.Length(min=1, max=5000))
    location = fields.Str(allow_none=True, load_default=None, validate=validate.Length(max=200))
    lat = fields.Float(allow_none=True, load_default=None, validate=_lat)
    lng = fields.Float(allow_none=True, load_default=None, validate=_lng)
    contact_info = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    alert_enabled = fields.Bool(load_default=False)
    image_urls = fields.List(fields.Url(), load_default=list)


class FoundReportSchema(_FormSchema):
    location = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    lat = fields.Float(allow_none=True, load_default=None, validate=_lat)
    lng = fields.Float(allow_none=True, load_default=None, validate=_lng)
    contact_info = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    image_urls = fields.List(fields.Url(), load_default=list)


class SearchSchema(_FormSchema):
    description = fields.Str(required=True)
    location = fields.Str(allow_none=True, load_default=None)
    lat = fields.Float(allow_none=True, load_default=None, validate=_lat)
    lng = fields.Float(allow_none=True, load_default=None, validate=_lng)
    # miles
    radius = fields.Float(allow_none=True, load_default=None, validate=validate.Range(min=0, min_inclusive=False))
    # Display unit for distance labels only
    units = fields.Str(load_default="mi", validate=validate.OneOf(["mi", "km"]))


class FoundItemSchema(Schema):
    id = fields.Int(dump_only=True)
    image_urls = fields.List(fields.Str(), data_key="imageUrls")
    title = fields.Str(attribute="auto_title")
    description = fields.Str(attribute="auto_description")
    tags = fields.List(fields.Str())
    location = fields.Str()
    lat = fields.Float(allow_none=True)
    lng = fields.Float(allow_none=True)
    contact_info = fields.Str(data_key="contactInfo")
    claimed = fields.Bool()
    created_at = fields.DateTime(data_key="createdAt")


class LostItemSchema(Schema):
    id = fields.Int(dump_only=True)
    description = fields.Str()
    location = fields.Str(allow_none=True)
    lat = fields.Float(allow_none=True)
    lng = fields.Float(allow_none=True)
    contact_info = fields.Str(data_key="contactInfo")
    image_urls = fields.List(fields.Str(), data_key="imageUrls")
    alert_enabled = fields.Bool(data_key="alertEnabled")
    status = fields.Str()
    created_at = fields.DateTime(data_key="createdAt")


# Public listings never expose the finder's contact; claiming does.
public_found_schema = FoundItemSchema(exclude=("contact_info",))
