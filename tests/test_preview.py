"""Tests for preview formatting and markdown rendering."""

import pytest

from news_writer.services import preview
from news_writer.services.photos import MISSING_IMAGE_URL
from news_writer.services.preview import (
    format_preview,
    parse_style,
    render_markdown,
)


def test_format_preview_wraps_images_with_alt_caption() -> None:
    result = format_preview('<p><img src="https://img.test/a.jpg" alt="合影"></p>')

    figure_style = "margin: 12px auto; max-width: 100%; text-align: center"
    assert f'<figure style="{figure_style}">' in result
    assert (
        'style="max-width: 100%; height: auto; display: block; margin: 12px auto"'
        in result
    )
    assert ">合影</figcaption>" in result
    assert 'alt="合影"' in result


def test_format_preview_keeps_existing_image_margin() -> None:
    result = format_preview('<img src="https://img.test/a.jpg" style="margin: 0">')

    assert 'style="margin: 0; max-width: 100%; height: auto; display: block"' in result


def test_format_preview_consumes_data_caption() -> None:
    result = format_preview(
        '<img src="https://img.test/a.jpg" data-caption="嘉宾致辞"><p>正文</p>'
    )

    assert "data-caption" not in result
    assert ">嘉宾致辞</figcaption>" in result
    assert '<p style="margin-top: 6px; margin-bottom: 10px">正文</p>' in result


def test_format_preview_uses_adjacent_short_text() -> None:
    result = format_preview('<div><img src="https://img.test/a.jpg">现场照片</div>')

    assert result.count("现场照片") == 1
    assert ">现场照片</figcaption></figure></div>" in result


def test_format_preview_uses_adjacent_caption_element() -> None:
    result = format_preview(
        '<p><img src="https://img.test/a.jpg"> <em>领导讲话</em></p>'
    )

    assert "<em>" not in result
    assert ">领导讲话</figcaption>" in result


def test_format_preview_skips_long_text_caption() -> None:
    long_text = "字" * 250

    result = format_preview(f'<div><img src="https://img.test/a.jpg">{long_text}</div>')

    assert "<figcaption" not in result
    assert long_text in result


def test_format_preview_does_not_nest_figures() -> None:
    result = format_preview('<figure><img src="https://img.test/a.jpg"></figure>')

    assert result.count("<figure") == 1


def test_format_preview_styles_headings_and_keeps_paragraph_margins() -> None:
    result = format_preview('<h2>标题</h2><p style="margin-top: 0">段落</p>')

    heading_style = parse_style(result.split('style="')[1].split('"')[0])
    assert heading_style["line-height"] == "1.35"
    assert heading_style["word-break"] == "break-word"
    assert '<p style="margin-top: 0; margin-bottom: 10px">段落</p>' in result


def test_format_preview_returns_input_on_failure(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _boom(img: object) -> None:
        raise RuntimeError("bad node")

    monkeypatch.setattr(preview, "_style_image", _boom)
    html = '<img src="https://img.test/a.jpg">'

    assert format_preview(html) == html


def test_render_markdown_disables_raw_html_and_script_links() -> None:
    result = render_markdown(
        "# 标题\n\n<script>x()</script>\n\n[点我](javascript:alert(1))"
    )

    assert "<h1>标题</h1>" in result
    assert "<script>" not in result
    assert "href" not in result


def test_render_markdown_allows_placeholder_images() -> None:
    result = render_markdown(f"![图片缺失]({MISSING_IMAGE_URL})")

    assert 'src="data:image/svg+xml' in result


def test_render_markdown_empty() -> None:
    assert render_markdown("") == ""


def test_format_preview_keeps_paragraph_margin_shorthand() -> None:
    result = format_preview('<p style="margin: 0">段落</p>')

    assert '<p style="margin: 0">段落</p>' in result


def test_format_preview_keeps_semicolons_inside_urls() -> None:
    result = format_preview(
        '<img src="https://img.test/a.jpg" '
        'style="background: url(data:image/png;base64,AAAA)">'
    )

    assert "background: url(data:image/png;base64,AAAA); max-width: 100%" in result


def test_parse_style_respects_urls_quotes_and_important() -> None:
    declarations = parse_style(
        "background: url(data:image/png;base64,AAAA); "
        "font-family: 'a;b'; COLOR: red !important; broken"
    )

    assert declarations == {
        "background": "url(data:image/png;base64,AAAA)",
        "font-family": '"a;b"',
        "color": "red !important",
    }
