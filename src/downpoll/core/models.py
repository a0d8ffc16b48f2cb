"""
Content model
Typed listing pages, posts and their attachment bodies
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Union
from urllib.parse import quote

from .constants import ItemType, ORIGIN_URL

logger = logging.getLogger(__name__)

_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d\d:\d\d$|$)")


class ModelError(ValueError):
    """Raised when a listing response does not have the expected shape"""


def parse_datetime(value) -> datetime:
    """Parse an RFC 3339 timestamp, keeping the offset the API reports"""
    if not isinstance(value, str) or not value:
        raise ModelError(f"invalid datetime: {value!r}")
    # fromisoformat wants exactly six fraction digits before 3.11
    text = value.replace("Z", "+00:00").replace("z", "+00:00")
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text)
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ModelError(f"invalid datetime: {value!r}") from e


def _list_of(data: dict, key: str) -> list:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ModelError(f"expected a list for {key!r}, got {type(value).__name__}")
    return value


@dataclass
class User:
    user_id: str = ""
    name: str = ""
    icon_url: str = ""

    @classmethod
    def from_json(cls, data: Optional[dict]) -> "User":
        data = data or {}
        return cls(
            user_id=data.get("userId") or "",
            name=data.get("name") or "",
            icon_url=data.get("iconUrl") or "",
        )


@dataclass
class Image:
    id: str
    extension: str
    original_url: str
    thumbnail_url: str = ""
    width: int = 0
    height: int = 0

    @classmethod
    def from_json(cls, data: dict) -> "Image":
        return cls(
            id=data.get("id") or "",
            extension=data.get("extension") or "",
            original_url=data.get("originalUrl") or "",
            thumbnail_url=data.get("thumbnailUrl") or "",
            width=data.get("width") or 0,
            height=data.get("height") or 0,
        )


@dataclass
class File:
    id: str
    name: str
    extension: str
    url: str
    size: int = 0

    @classmethod
    def from_json(cls, data: dict) -> "File":
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            extension=data.get("extension") or "",
            url=data.get("url") or "",
            size=data.get("size") or 0,
        )


@dataclass
class ArticleBlock:
    type: str
    text: str = ""
    image_id: str = ""


@dataclass
class ArticleBody:
    """Rich-text post; carries no downloadable file"""
    blocks: List[ArticleBlock] = field(default_factory=list)
    image_map: Dict[str, Image] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: dict) -> "ArticleBody":
        blocks = [
            ArticleBlock(
                type=block.get("type") or "",
                text=block.get("text") or "",
                image_id=block.get("imageId") or "",
            )
            for block in _list_of(data, "blocks")
        ]
        image_map = {
            key: Image.from_json(value)
            for key, value in (data.get("imageMap") or {}).items()
        }
        return cls(blocks=blocks, image_map=image_map)


@dataclass
class ImageBody:
    text: str = ""
    images: List[Image] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict) -> "ImageBody":
        return cls(
            text=data.get("text") or "",
            images=[Image.from_json(image) for image in _list_of(data, "images")],
        )


@dataclass
class FileBody:
    text: str = ""
    files: List[File] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict) -> "FileBody":
        return cls(
            text=data.get("text") or "",
            files=[File.from_json(f) for f in _list_of(data, "files")],
        )


@dataclass
class UnknownBody:
    """Body of a post whose type tag this client does not know"""
    type: str


ItemBody = Union[ArticleBody, ImageBody, FileBody, UnknownBody]

_BODY_TYPES = {
    ItemType.ARTICLE.value: ArticleBody,
    ItemType.IMAGE.value: ImageBody,
    ItemType.FILE.value: FileBody,
}


def decode_body(type_tag: str, data) -> Optional[ItemBody]:
    """Select the body variant by the item's type tag

    Unknown tags never fail: they decode to UnknownBody so newer API post
    types are skipped instead of breaking the whole page. A missing body
    (posts the session cannot view) decodes to None.
    """
    body_type = _BODY_TYPES.get(type_tag)
    if body_type is None:
        logger.warning("Unknown item type: %r", type_tag)
        return UnknownBody(type=type_tag)

    if data is None:
        return None
    if not isinstance(data, dict):
        raise ModelError(f"expected an object for {type_tag} body, got {type(data).__name__}")

    return body_type.from_json(data)


@dataclass
class Item:
    id: str
    title: str
    type: str
    creator_id: str
    published_datetime: datetime
    body: Optional[ItemBody] = None
    updated_datetime: Optional[datetime] = None
    fee_required: int = 0
    excerpt: str = ""
    cover_image_url: str = ""
    user: User = field(default_factory=User)
    status: str = ""
    is_liked: bool = False
    like_count: int = 0
    comment_count: int = 0
    has_adult_content: bool = False

    @property
    def url(self) -> str:
        """Direct URL to the post"""
        return f"{ORIGIN_URL}/@{quote(self.creator_id, safe='')}/posts/{self.id}"

    @classmethod
    def from_json(cls, data: dict) -> "Item":
        if not isinstance(data, dict):
            raise ModelError(f"expected an item object, got {type(data).__name__}")

        type_tag = data.get("type") or ""
        updated = data.get("updatedDatetime")

        return cls(
            id=str(data.get("id") or ""),
            title=data.get("title") or "",
            type=type_tag,
            creator_id=data.get("creatorId") or "",
            published_datetime=parse_datetime(data.get("publishedDatetime")),
            body=decode_body(type_tag, data.get("body")),
            updated_datetime=parse_datetime(updated) if updated else None,
            fee_required=data.get("feeRequired") or 0,
            excerpt=data.get("excerpt") or "",
            cover_image_url=data.get("coverImageUrl") or "",
            user=User.from_json(data.get("user")),
            status=data.get("status") or "",
            is_liked=bool(data.get("isLiked")),
            like_count=data.get("likeCount") or 0,
            comment_count=data.get("commentCount") or 0,
            has_adult_content=bool(data.get("hasAdultContent")),
        )


@dataclass
class Page:
    items: List[Item] = field(default_factory=list)
    next_url: Optional[str] = None

    @classmethod
    def from_json(cls, data) -> "Page":
        """Decode a listing response of the form {"body": {"items": [...], "nextUrl": ...}}"""
        if not isinstance(data, dict) or not isinstance(data.get("body"), dict):
            raise ModelError("listing response has no body object")

        body = data["body"]
        return cls(
            items=[Item.from_json(item) for item in _list_of(body, "items")],
            next_url=body.get("nextUrl") or None,
        )
