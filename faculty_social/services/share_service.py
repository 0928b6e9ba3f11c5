"""Share targets for faculty profile pages."""
from __future__ import annotations

from enum import Enum
from urllib.parse import quote

from ..config import get_settings


class ShareTarget(str, Enum):
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    WHATSAPP = "whatsapp"
    COPY_LINK = "copy"


def profile_url(subject_id: str, *, base_url: str | None = None, path_template: str | None = None) -> str:
    settings = get_settings()
    base = (base_url or settings.public_base_url).rstrip("/")
    path = (path_template or settings.profile_path_template).format(subject_id=quote(subject_id, safe=""))
    if not path.startswith("/"):
        path = "/" + path
    return base + path


def share_url(target: ShareTarget, url: str, title: str = "") -> str:
    """Return the URL that opens ``target``'s share dialog for ``url``.

    ``COPY_LINK`` returns the profile URL unchanged.
    """

    encoded_url = quote(url, safe="")
    encoded_title = quote(title, safe="")
    if target is ShareTarget.FACEBOOK:
        return f"https://www.facebook.com/sharer/sharer.php?u={encoded_url}"
    if target is ShareTarget.TWITTER:
        return f"https://twitter.com/intent/tweet?url={encoded_url}&text={encoded_title}"
    if target is ShareTarget.LINKEDIN:
        return f"https://www.linkedin.com/sharing/share-offsite/?url={encoded_url}"
    if target is ShareTarget.WHATSAPP:
        text = f"{encoded_title}%20{encoded_url}" if encoded_title else encoded_url
        return f"https://wa.me/?text={text}"
    return url


def share_links(url: str, title: str = "") -> dict[str, str]:
    return {target.value: share_url(target, url, title) for target in ShareTarget}


__all__ = ["ShareTarget", "profile_url", "share_url", "share_links"]
