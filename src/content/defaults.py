"""Built-in content used when an entity has never been written.

Singletons fall back to these values on first start and whenever bootstrap
finds neither a usable stored value nor a usable backup.
"""

from __future__ import annotations

from folio.content.models import (
    AboutContent,
    Bilingual,
    ContactInfo,
    ContentModel,
    EntityKind,
    HeroContent,
    SystemSettings,
)

DEFAULT_COLOR_PALETTE = [
    "#3B82F6",
    "#10B981",
    "#F59E0B",
    "#EF4444",
    "#8B5CF6",
    "#06B6D4",
    "#84CC16",
    "#F97316",
]


def default_hero() -> HeroContent:
    return HeroContent(
        greeting=Bilingual(vi="Xin chào! Tôi là", en="Hello! I'm"),
        name=Bilingual(vi="Nhật Anh Dev", en="Nhật Anh Dev"),
        title=Bilingual(
            vi="Freelance Fullstack Developer", en="Freelance Fullstack Developer"
        ),
        subtitle=Bilingual(
            vi="Phát triển web toàn diện với công nghệ hiện đại",
            en="Comprehensive web development with modern technology",
        ),
        cta_text=Bilingual(vi="Xem Portfolio", en="View Portfolio"),
        cta_link="#portfolio",
    )


def default_about() -> AboutContent:
    return AboutContent(
        description=Bilingual(
            vi=(
                "Với hơn 5 năm kinh nghiệm trong lập trình fullstack, tôi chuyên phát triển "
                "các ứng dụng web hiện đại sử dụng React, Node.js, và các công nghệ tiên tiến."
            ),
            en=(
                "With over 5 years of experience in fullstack programming, I specialize in "
                "developing modern web applications using React, Node.js, and cutting-edge "
                "technologies."
            ),
        ),
        experience=Bilingual(
            vi="Đam mê tạo ra những sản phẩm chất lượng cao và trải nghiệm người dùng tuyệt vời.",
            en="Passionate about creating high-quality products and excellent user experiences.",
        ),
        profile_image="/assets/pixel-dev-character.png",
    )


def default_contact_info() -> ContactInfo:
    return ContactInfo(
        email="nhatanhdev@gmail.com",
        phone="+84 123 456 789",
        github="https://github.com/nhatanhdev",
        linkedin="https://linkedin.com/in/nhatanhdev",
    )


def default_system_settings() -> SystemSettings:
    return SystemSettings(color_palette=list(DEFAULT_COLOR_PALETTE))


_SINGLETON_DEFAULTS = {
    EntityKind.HERO: default_hero,
    EntityKind.ABOUT: default_about,
    EntityKind.CONTACT_INFO: default_contact_info,
    EntityKind.SYSTEM_SETTINGS: default_system_settings,
}


def default_value(kind: EntityKind) -> ContentModel | list[ContentModel]:
    """Return a fresh default for ``kind``: a model for singletons, ``[]`` otherwise."""
    factory = _SINGLETON_DEFAULTS.get(kind)
    if factory is None:
        return []
    return factory()
