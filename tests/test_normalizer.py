"""Tests for markdown token normalization."""

from news_writer.services.normalizer import (
    count_visible_chars,
    fix_nested_markdown_images,
    normalize_markdown,
)


def test_normalize_markdown_repairs_headings_and_spaces() -> None:
    text = "\ufeff\uff03标题\n\u200b##小标题\n正文\u00a0内容\u3000结束"

    result = normalize_markdown(text)

    assert result == "# 标题\n## 小标题\n正文 内容 结束"


def test_normalize_markdown_keeps_line_structure() -> None:
    text = "#一\n\n  缩进行\n\u2066###三\n####### 七个"

    result = normalize_markdown(text)

    assert result.split("\n") == ["# 一", "", "  缩进行", "### 三", "####### 七个"]


def test_normalize_markdown_is_idempotent() -> None:
    samples = [
        "",
        "\ufeff#标题",
        "\uff03\uff03标题\n\u200e#副标题",
        "普通文本 #不是标题",
        "\u00a0\u3000## x",
        "\u200b\u200b#\u3000x",
    ]
    for sample in samples:
        once = normalize_markdown(sample)
        assert normalize_markdown(once) == once


def test_fix_nested_markdown_images_literal() -> None:
    text = "![外层](![内层](https://img.test/a.jpg))"

    assert fix_nested_markdown_images(text) == "![外层](https://img.test/a.jpg)"


def test_fix_nested_markdown_images_encoded_uses_inner_alt() -> None:
    text = "![](%21%5B%E5%86%85%5D%28https%3A%2F%2Fimg.test%2Fa.jpg%29)"

    assert fix_nested_markdown_images(text) == "![内](https://img.test/a.jpg)"


def test_fix_nested_markdown_images_leaves_plain_images() -> None:
    text = "![图](https://img.test/a%20b.jpg)"

    assert fix_nested_markdown_images(text) == text


def test_count_visible_chars_ignores_urls() -> None:
    text = "你好![图](https://img.test/a.jpg) 见 https://x.test/y"

    assert count_visible_chars(text) == len("你好图 见 ")
    assert count_visible_chars("") == 0
