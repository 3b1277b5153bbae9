import itertools

import pytest

from blogfront.images import (
    CARD_RENDITIONS,
    DEFAULT_IMAGE_ALT,
    display_image_url,
    extract_first_image,
    optimal_image_url,
    resolve_post_image,
)
from blogfront.models import ContentItem, ImageReference, MediaAsset, PostWithMedia

from conftest import make_media, make_post

ALL_SIZES = ("thumbnail", "medium", "medium_large", "large")


def test_optimal_image_prefers_large():
    media = MediaAsset.from_api(make_media(5))
    assert optimal_image_url(media) == "https://cdn.example/5-large.jpg"


def test_optimal_image_uses_medium_when_only_rendition():
    media = MediaAsset.from_api(make_media(5, sizes=("medium",)))
    assert optimal_image_url(media) == "https://cdn.example/5-medium.jpg"


def test_optimal_image_falls_back_to_source_url():
    media = MediaAsset.from_api(make_media(5, sizes=("thumbnail",)))
    assert optimal_image_url(media) == "https://cdn.example/5.jpg"


def test_card_preference_picks_medium_first():
    media = MediaAsset.from_api(make_media(5))
    assert optimal_image_url(media, CARD_RENDITIONS) == "https://cdn.example/5-medium.jpg"


@pytest.mark.parametrize(
    "sizes",
    [combo for n in range(len(ALL_SIZES) + 1) for combo in itertools.combinations(ALL_SIZES, n)],
)
def test_optimal_image_never_empty_with_source_url(sizes):
    media = MediaAsset.from_api(make_media(9, sizes=sizes))
    assert optimal_image_url(media)


def test_extract_first_image_returns_first_tag():
    html = (
        '<p>Intro</p><img class="wp-image" src="https://a.example/1.jpg" alt="One">'
        '<img src="https://a.example/2.jpg" alt="Two">'
    )
    assert extract_first_image(html) == ImageReference(src="https://a.example/1.jpg", alt="One")


def test_extract_first_image_reads_alt_before_src():
    html = '<figure><img alt="Cover" src="https://a.example/c.png" /></figure>'
    assert extract_first_image(html) == ImageReference(src="https://a.example/c.png", alt="Cover")


def test_extract_first_image_defaults_alt():
    image = extract_first_image('<img src="https://a.example/1.jpg">')
    assert image is not None
    assert image.alt == DEFAULT_IMAGE_ALT


def test_extract_first_image_upgrades_protocol_relative_src():
    image = extract_first_image('<img src="//cdn.example/x.jpg">')
    assert image is not None
    assert image.src == "https://cdn.example/x.jpg"


@pytest.mark.parametrize(
    "html",
    [
        None,
        "",
        "<p>No pictures here</p>",
        "<img alt='missing source'>",
        '<div><img src=""></div>',
        "<p>unclosed <b>bold",
        "<<<img",
    ],
)
def test_extract_first_image_without_image_returns_none(html):
    assert extract_first_image(html) is None


def test_resolve_post_image_prefers_featured_media():
    item = ContentItem.from_api(
        make_post(1, content={"rendered": '<img src="https://a.example/body.jpg">'})
    )
    media = MediaAsset.from_api(make_media(42))
    assert resolve_post_image(item, media) == (media, None)


def test_resolve_post_image_scans_body_without_media():
    item = ContentItem.from_api(
        make_post(1, content={"rendered": '<p>x</p><img src="https://a.example/body.jpg">'})
    )
    featured, content_image = resolve_post_image(item, None)
    assert featured is None
    assert content_image.src == "https://a.example/body.jpg"


def test_display_image_url():
    item = ContentItem.from_api(make_post(1))
    media = MediaAsset.from_api(make_media(3, sizes=("medium",)))
    assert display_image_url(PostWithMedia(item, featured_image=media)) == "https://cdn.example/3-medium.jpg"
    body = ImageReference(src="https://a.example/b.jpg", alt="b")
    assert display_image_url(PostWithMedia(item, content_image=body)) == "https://a.example/b.jpg"
    assert display_image_url(PostWithMedia(item)) is None
