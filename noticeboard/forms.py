from dataclasses import dataclass, field

from noticeboard.assets import UploadedAsset
from noticeboard.errors import FormValidationError


@dataclass
class NotificationForm:
    """
    What the notifications screen has collected so far.
    """

    title_en: str = ""
    title_ka: str = ""
    date: str = ""
    attachment: UploadedAsset | None = None

    def validate(self):
        missing = []
        if not self.title_en.strip():
            missing.append("English title")
        if not self.date.strip():
            missing.append("date")
        if missing:
            raise FormValidationError(f"Fill required fields: {', '.join(missing)}")

    def clear(self):
        self.title_en = ""
        self.title_ka = ""
        self.date = ""
        self.attachment = None


@dataclass
class AnnouncementForm:
    """
    What the announcement screen has collected so far.
    """

    active: bool = True
    subtitle_en: str = ""
    subtitle_ka: str = ""
    description_en: str = ""
    description_ka: str = ""
    images: list[UploadedAsset] = field(default_factory=list)

    def validate(self):
        if not self.subtitle_en.strip() or not self.images:
            raise FormValidationError(
                "Please fill in the English subtitle and select at least one image."
            )
        not_images = [image.name for image in self.images if not image.is_image]
        if not_images:
            raise FormValidationError(f"Not image files: {', '.join(not_images)}")

    def clear(self):
        self.active = True
        self.subtitle_en = ""
        self.subtitle_ka = ""
        self.description_en = ""
        self.description_ka = ""
        self.images = []
