from dataclasses import dataclass, field


@dataclass(frozen=True)
class PresignedUploadForm:
    """Target URL and form fields for a direct browser POST upload."""

    url: str
    fields: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class UploadTicket:
    """Everything a client needs to upload one file and read it back."""

    object_key: str
    upload_form: PresignedUploadForm
    download_url: str
    file_size: int
    mime_type: str
