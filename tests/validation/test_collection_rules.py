"""Tests for service, project and blog post validation."""

from datetime import UTC, datetime

from folio.validation.blog import validate_blog_post
from folio.validation.project import validate_project
from folio.validation.service import validate_service


def _service(**overrides: object) -> dict:
    data = {
        "title": {"vi": "Phát triển web", "en": "Web development"},
        "description": {"vi": "Xây dựng website", "en": "Building websites"},
        "icon": "code",
        "color": "#3B82F6",
        "bgColor": "#eff6ff",
        "order": 0,
    }
    data.update(overrides)
    return data


def _project(**overrides: object) -> dict:
    data = {
        "title": {"vi": "Cửa hàng", "en": "Shop"},
        "description": {"vi": "Thương mại điện tử", "en": "E-commerce"},
        "image": "https://cdn.example.org/shop.png",
        "images": [],
        "link": "https://shop.example.org",
        "technologies": ["React", "Node.js"],
        "category": "web",
    }
    data.update(overrides)
    return data


def _post(**overrides: object) -> dict:
    data = {
        "title": {"vi": "Bài viết", "en": "Post"},
        "content": {"vi": "Xem [liên kết](https://a.org)", "en": "See [link](https://a.org)"},
        "excerpt": {"vi": "Tóm tắt", "en": "Summary"},
        "status": "draft",
        "tags": [],
    }
    data.update(overrides)
    return data


class TestService:
    def test_valid_and_colors_upper_cased(self):
        result = validate_service(_service())
        assert result.valid is True
        assert result.sanitized.bg_color == "#EFF6FF"

    def test_short_hex_accepted(self):
        assert validate_service(_service(color="#fff")).sanitized.color == "#FFF"

    def test_bad_colors(self):
        result = validate_service(_service(color="blue", bgColor=""))
        assert result.errors == {
            "color": "Color must be a valid hex color code (e.g., #FF6B6B or #FFF)",
            "bgColor": "Background color is required",
        }

    def test_order_out_of_range(self):
        assert validate_service(_service(order=-3)).errors == {
            "order": "Order must be 0 or greater"
        }

    def test_order_must_be_integer(self):
        assert "order" in validate_service(_service(order="first")).errors

    def test_icon_required(self):
        assert validate_service(_service(icon="  ")).errors == {"icon": "Icon is required"}


class TestProject:
    def test_valid(self):
        result = validate_project(_project())
        assert result.valid is True
        assert result.sanitized.technologies == ["React", "Node.js"]

    def test_technologies_rules(self):
        assert validate_project(_project(technologies=[])).errors == {
            "technologies": "At least one technology is required"
        }
        assert validate_project(_project(technologies=["React", " "])).errors == {
            "technologies.1": "Technology cannot be empty"
        }
        assert validate_project(_project(technologies=["React", "react"])).errors == {
            "technologies": "Technologies must not contain duplicates"
        }
        assert "technologies.0" in validate_project(_project(technologies=["x" * 51])).errors

    def test_link_optional_but_must_be_url(self):
        assert validate_project(_project(link="")).sanitized.link is None
        assert validate_project(_project(link=None)).valid is True
        assert validate_project(_project(link="shop")).errors == {
            "link": "Link must be a valid URL"
        }

    def test_main_image_required(self):
        assert validate_project(_project(image="")).errors == {"image": "Main image is required"}

    def test_gallery_entries_non_empty(self):
        result = validate_project(_project(images=["/a.png", ""]))
        assert result.errors == {"images.1": "Gallery image reference cannot be empty"}

    def test_category_required(self):
        assert validate_project(_project(category="")).errors == {
            "category": "Category is required"
        }


class TestBlogPost:
    def test_valid_draft(self):
        assert validate_blog_post(_post()).valid is True

    def test_published_requires_date(self):
        assert validate_blog_post(_post(status="published")).errors == {
            "publishDate": "Published posts must have a publish date"
        }
        dated = _post(status="published", publishDate=datetime(2026, 1, 1, tzinfo=UTC))
        assert validate_blog_post(dated).valid is True

    def test_draft_cannot_carry_date(self):
        result = validate_blog_post(_post(publishDate="2026-01-01T00:00:00Z"))
        assert result.errors == {"publishDate": "Draft posts cannot have a publish date"}

    def test_unknown_status(self):
        assert "status" in validate_blog_post(_post(status="archived")).errors

    def test_bad_status_reported_with_content_errors(self):
        result = validate_blog_post(
            _post(status="archived", title={"vi": "Bài viết", "en": ""})
        )
        assert set(result.errors) == {"status", "title.en"}

    def test_unbalanced_markdown(self):
        result = validate_blog_post(
            _post(content={"vi": "Xem [liên kết(https://a.org)", "en": "Fine"})
        )
        assert list(result.errors) == ["content.vi"]

    def test_tags_cleaned_and_deduplicated(self):
        result = validate_blog_post(_post(tags=[" python ", "Python", "", "web"]))
        assert result.sanitized.tags == ["python", "web"]

    def test_tag_length(self):
        assert "tags" in validate_blog_post(_post(tags=["t" * 51])).errors

    def test_thumbnail_optional_but_checked(self):
        assert validate_blog_post(_post(thumbnail="")).valid is True
        assert "thumbnail" in validate_blog_post(_post(thumbnail="thumb.png")).errors

    def test_excerpt_limit(self):
        result = validate_blog_post(_post(excerpt={"vi": "e" * 501, "en": "ok"}))
        assert result.errors == {"excerpt.vi": "Vietnamese excerpt must be 500 characters or less"}
