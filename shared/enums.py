import enum


class FileType(str, enum.Enum):
    """Classification of an uploaded media asset.

    Derived from the declared MIME type at upload time: anything under
    ``image/`` is a photo, everything else that passes the allow-list is a video.
    """
    PHOTO = "photo"
    VIDEO = "video"

    @classmethod
    def from_mime_type(cls, mime_type):
        if mime_type and mime_type.startswith('image/'):
            return cls.PHOTO
        return cls.VIDEO


class TokenType(str, enum.Enum):
    """Kinds of signed tokens issued by the auth endpoints."""
    ACCESS = "access"
    REFRESH = "refresh"
