"""
Tests for OpenGraph accumulation, both directly and through parse_html.
"""

from webpage_info import parse_html, WebpageParser, Extractor, ResourceLimits
from webpage_info.opengraph import extend_opengraph, extend_media
from webpage_info.schemas import Opengraph, OpengraphMedia


def _meta(prop: str, content: str) -> str:
    return f'<meta property="{prop}" content="{content}">'


def _doc(*tags: str) -> str:
    return "<html><head>" + "".join(tags) + "</head><body></body></html>"


class TestScalars:
    def test_basic_fields(self):
        info = parse_html(_doc(
            _meta("og:type", "website"),
            _meta("og:title", "Example"),
            _meta("og:description", "An example site"),
            _meta("og:url", "https://example.com/"),
            _meta("og:site_name", "Example Inc"),
            _meta("og:locale", "en_US"),
        ))
        og = info.opengraph

        assert og.og_type == "website"
        assert og.title == "Example"
        assert og.description == "An example site"
        assert og.url == "https://example.com/"
        assert og.site_name == "Example Inc"
        assert og.locale == "en_US"
        assert not og.is_empty()

    def test_locale_alternates_in_order(self):
        info = parse_html(_doc(
            _meta("og:locale", "en_US"),
            _meta("og:locale:alternate", "fr_FR"),
            _meta("og:locale:alternate", "es_ES"),
        ))
        assert info.opengraph.locale_alternates == ["fr_FR", "es_ES"]

    def test_unknown_keys_go_to_properties(self):
        info = parse_html(_doc(
            _meta("og:determiner", "the"),
            _meta("og:article:author", "Jane"),
        ))
        assert info.opengraph.properties == {"determiner": "the", "article:author": "Jane"}

    def test_og_tags_also_land_in_meta_map(self):
        info = parse_html(_doc(_meta("og:title", "Example")))
        assert info.meta["og:title"] == "Example"

    def test_name_attribute_accepted(self):
        info = parse_html(_doc('<meta name="og:title" content="Via name">'))
        assert info.opengraph.title == "Via name"


class TestMedia:
    def test_sub_properties_attach_to_preceding_image(self):
        info = parse_html(_doc(
            _meta("og:image", "https://example.com/a.png"),
            _meta("og:image:width", "800"),
            _meta("og:image:height", "600"),
            _meta("og:image:type", "image/png"),
            _meta("og:image:alt", "A"),
            _meta("og:image", "https://example.com/b.png"),
            _meta("og:image:secure_url", "https://secure.example.com/b.png"),
            _meta("og:image:user_generated", "true"),
        ))
        first, second = info.opengraph.images

        assert first.url == "https://example.com/a.png"
        assert (first.width, first.height) == (800, 600)
        assert first.mime_type == "image/png"
        assert first.alt == "A"
        assert first.secure_url is None

        assert second.url == "https://example.com/b.png"
        assert second.secure_url == "https://secure.example.com/b.png"
        assert second.properties == {"user_generated": "true"}
        assert second.width is None

    def test_url_suffix_starts_new_item(self):
        info = parse_html(_doc(
            _meta("og:image:url", "https://example.com/a.png"),
            _meta("og:image:url", "https://example.com/b.png"),
        ))
        assert [m.url for m in info.opengraph.images] == [
            "https://example.com/a.png", "https://example.com/b.png",
        ]

    def test_modifier_before_primary_is_discarded(self):
        info = parse_html(_doc(
            _meta("og:image:width", "100"),
            _meta("og:image", "https://example.com/a.png"),
        ))
        assert len(info.opengraph.images) == 1
        assert info.opengraph.images[0].width is None

    def test_categories_are_independent(self):
        info = parse_html(_doc(
            _meta("og:video", "https://example.com/v.mp4"),
            _meta("og:audio", "https://example.com/a.mp3"),
            _meta("og:video:type", "video/mp4"),
        ))
        og = info.opengraph

        assert og.videos[0].mime_type == "video/mp4"
        assert og.audios[0].url == "https://example.com/a.mp3"
        assert og.audios[0].mime_type is None
        assert og.images == []

    def test_bad_dimension_is_none(self):
        og = Opengraph()
        extend_opengraph(og, "image", "https://example.com/a.png")
        extend_opengraph(og, "image:width", "wide")
        extend_opengraph(og, "image:height", "-5")

        assert og.images[0].width is None
        assert og.images[0].height is None

    def test_cap_per_category(self):
        images = [_meta("og:image", f"https://example.com/{i}.png") for i in range(8)]
        parser = WebpageParser(extractor=Extractor(limits=ResourceLimits(max_media_items=3)))
        info = parser.parse(_doc(*images, _meta("og:video", "https://example.com/v.mp4")))

        assert [m.url for m in info.opengraph.images] == [
            "https://example.com/0.png", "https://example.com/1.png", "https://example.com/2.png",
        ]
        assert len(info.opengraph.videos) == 1

    def test_modifier_after_cap_hits_last_kept_item(self):
        media: list[OpengraphMedia] = []
        extend_media(media, "", "https://example.com/0.png", max_items=1)
        extend_media(media, "", "https://example.com/1.png", max_items=1)
        extend_media(media, "alt", "second", max_items=1)

        assert len(media) == 1
        assert media[0].alt == "second"


class TestIsEmpty:
    def test_fresh_record_is_empty(self):
        assert Opengraph().is_empty()

    def test_locale_alone_counts_as_empty(self):
        og = Opengraph(locale="en_US", site_name="x")
        assert og.is_empty()

    def test_single_image_is_not_empty(self):
        og = Opengraph(images=[OpengraphMedia(url="https://example.com/a.png")])
        assert not og.is_empty()
