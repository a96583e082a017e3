from __future__ import annotations

from flask import request

from ..matching import Upload


def read_payload(file_field: str = "images") -> tuple[dict, list[Upload]]:
    """Request body as a plain dict plus any uploaded files.

    Accepts application/json or multipart/form-data. Repeated ``image_urls``
    form fields are collected into a list.
    """
    content_type = request.content_type or ""
    if content_type.startswith("multipart/form-data"):
        data: dict = {k: v for k, v in request.form.items()}
        urls = [u for u in request.form.getlist("image_urls") if u.strip()]
        if urls:
            data["image_urls"] = urls
        else:
            data.pop("image_urls", None)
        uploads = []
        for f in request.files.getlist(file_field):
            if f and f.filename:
                body = f.read()
                if body:
                    uploads.append(Upload(data=body, filename=f.filename, mimetype=f.mimetype))
        return data, uploads
    return dict(request.get_json(silent=True) or {}), []
