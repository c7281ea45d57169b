#!/usr/bin/env python3
"""Tests for item classification."""

import re
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

# Add tests directory to path for conftest import
tests_dir = Path(__file__).parent.parent.parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from conftest import (  # noqa: E402
    build_atom_entry,
    build_atom_xml,
    build_rss_item,
    build_rss_xml,
    TEST_MEDIA_URL,
    TEST_MIME_MP4,
    TEST_MIME_RSS,
    TEST_MIME_XML,
    TEST_SUBFEED_URL,
    TEST_THUMBNAIL_URL,
)

from feed_navigator.classifier import ItemClassifier, make_item_id, resolve_url  # noqa: E402
from feed_navigator.config import FolderRules  # noqa: E402
from feed_navigator.feed_parser import parse_feed  # noqa: E402

ID_PATTERN = re.compile(r"^item-(\d+)-(\d+)-[a-z0-9]{9}$")


def _classify(*items, rules=None):
    parsed = parse_feed(build_rss_xml(list(items)))
    return ItemClassifier(rules).classify_items(parsed.items)


class TestFolderDetection(unittest.TestCase):
    """Tests for folder/leaf tagging."""

    def test_feed_enclosure_is_folder(self):
        (item,) = _classify(
            build_rss_item(
                "Show", enclosure_url="https://example.com/show", enclosure_type=TEST_MIME_RSS
            )
        )
        self.assertTrue(item.is_folder)
        self.assertEqual(item.mime_type_hint, TEST_MIME_RSS)

    def test_xml_mime_is_folder(self):
        (item,) = _classify(
            build_rss_item(
                "Show", enclosure_url="https://example.com/x", enclosure_type=TEST_MIME_XML
            )
        )
        self.assertTrue(item.is_folder)

    def test_mime_markers_are_case_insensitive(self):
        (item,) = _classify(
            build_rss_item(
                "Show", enclosure_url="https://example.com/x", enclosure_type="Application/RSS+XML"
            )
        )
        self.assertTrue(item.is_folder)

    def test_video_enclosure_is_leaf(self):
        (item,) = _classify(
            build_rss_item("Episode", enclosure_url=TEST_MEDIA_URL, enclosure_type=TEST_MIME_MP4)
        )
        self.assertFalse(item.is_folder)
        self.assertEqual(item.url, TEST_MEDIA_URL)

    def test_url_markers(self):
        folder_urls = [
            TEST_SUBFEED_URL,
            "https://example.com/RSS/latest",
            "https://example.com/index.php?channel=12",
            "https://example.com/index.php?subchannel=3",
            "https://example.com/index.php?film=9",
            "https://example.com/index.php?show=drama",
            "https://example.com/index.php?ep=4",
            "https://example.com/index.php?mirror=2",
            "https://example.com/index.php?xml=1",
        ]
        for url in folder_urls:
            with self.subTest(url=url):
                (item,) = _classify(build_rss_item("Link", link=url))
                self.assertTrue(item.is_folder)

    def test_plain_link_is_leaf(self):
        (item,) = _classify(build_rss_item("Watch", link="https://example.com/watch?id=1"))
        self.assertFalse(item.is_folder)
        self.assertEqual(item.mime_type_hint, "")

    def test_custom_rules(self):
        rules = FolderRules(mime_markers=("xml",), url_markers=("/browse/",))
        browse = build_rss_item("Browse", link="https://example.com/browse/1")
        (item,) = _classify(browse, rules=rules)
        self.assertTrue(item.is_folder)


class TestUrlResolution(unittest.TestCase):
    """Tests for URL, thumbnail and description resolution."""

    def test_enclosure_wins_over_link(self):
        (item,) = _classify(
            build_rss_item("Both", enclosure_url=TEST_MEDIA_URL, link="https://example.com/page")
        )
        self.assertEqual(item.url, TEST_MEDIA_URL)

    def test_first_enclosure_used(self):
        extra = '<enclosure url="https://example.com/second.mp4" type="video/mp4" />'
        (item,) = _classify(
            build_rss_item(
                "Two", enclosure_url=TEST_SUBFEED_URL, enclosure_type=TEST_MIME_RSS, extra=extra
            )
        )
        self.assertEqual(item.url, TEST_SUBFEED_URL)
        self.assertTrue(item.is_folder)

    def test_enclosure_without_url_falls_back_to_link(self):
        extra = '<enclosure type="video/mp4" /><link>https://example.com/v</link>'
        (item,) = _classify(build_rss_item("Odd", extra=extra))
        self.assertEqual(item.url, "https://example.com/v")
        self.assertEqual(item.mime_type_hint, TEST_MIME_MP4)

    def test_text_enclosure(self):
        extra = f"<enclosure>{TEST_MEDIA_URL}</enclosure>"
        (item,) = _classify(build_rss_item("Text", extra=extra))
        self.assertEqual(item.url, TEST_MEDIA_URL)

    def test_atom_href(self):
        parsed = parse_feed(build_atom_xml(build_atom_entry("Atom", TEST_SUBFEED_URL, "About")))
        (item,) = ItemClassifier().classify_items(parsed.items)
        self.assertEqual(item.url, TEST_SUBFEED_URL)
        self.assertEqual(item.description, "About")
        self.assertTrue(item.is_folder)

    def test_repeated_links_use_first_resolvable(self):
        extra = '<link rel="self" /><link href="https://example.com/alt.mp4" rel="alternate" />'
        (item,) = _classify(build_rss_item("Links", extra=extra))
        self.assertEqual(item.url, "https://example.com/alt.mp4")

    def test_url_is_trimmed(self):
        (item,) = _classify(build_rss_item("Spaces", link="  https://example.com/v  "))
        self.assertEqual(item.url, "https://example.com/v")

    def test_media_thumbnail(self):
        extra = f'<media:thumbnail url="{TEST_THUMBNAIL_URL}" />'
        (item,) = _classify(build_rss_item("T", link="https://example.com/v", extra=extra))
        self.assertEqual(item.thumbnail, TEST_THUMBNAIL_URL)

    def test_itunes_image_fallback(self):
        extra = f'<itunes:image href="{TEST_THUMBNAIL_URL}" />'
        (item,) = _classify(build_rss_item("T", link="https://example.com/v", extra=extra))
        self.assertEqual(item.thumbnail, TEST_THUMBNAIL_URL)

    def test_description_then_summary(self):
        (with_description,) = _classify(
            build_rss_item(
                "D",
                link="https://example.com/v",
                extra="<description>Desc</description><summary>S</summary>",
            )
        )
        (with_summary,) = _classify(
            build_rss_item(
                "S", link="https://example.com/v", extra="<summary>Only summary</summary>"
            )
        )
        self.assertEqual(with_description.description, "Desc")
        self.assertEqual(with_summary.description, "Only summary")

    def test_missing_metadata_is_empty(self):
        (item,) = _classify(build_rss_item("Bare", link="https://example.com/v"))
        self.assertEqual(item.thumbnail, "")
        self.assertEqual(item.description, "")

    def test_resolve_url_without_link_or_enclosure(self):
        parsed = parse_feed(build_rss_xml(build_rss_item("Nothing")))
        self.assertEqual(resolve_url(parsed.items[0]), ("", ""))


class TestClassifyItems(unittest.TestCase):
    """Tests for classifying whole item lists."""

    def test_items_without_url_are_skipped(self):
        items = _classify(
            build_rss_item("Nothing"),
            build_rss_item("Episode", enclosure_url=TEST_MEDIA_URL, enclosure_type=TEST_MIME_MP4),
        )
        self.assertEqual([item.title for item in items], ["Episode"])

    def test_missing_title_uses_placeholder(self):
        (item,) = _classify(build_rss_item(None, link="https://example.com/v"))
        self.assertEqual(item.title, "Untitled")

    def test_folder_and_leaf_in_order(self):
        items = _classify(
            build_rss_item("Show A", enclosure_url="https://x/a.xml", enclosure_type=TEST_MIME_RSS),
            build_rss_item("Ep 1", enclosure_url="https://x/1.mp4", enclosure_type=TEST_MIME_MP4),
        )
        self.assertEqual(
            [(item.title, item.url, item.is_folder) for item in items],
            [("Show A", "https://x/a.xml", True), ("Ep 1", "https://x/1.mp4", False)],
        )

    def test_ids_carry_position_and_are_unique(self):
        raw = [build_rss_item(f"E{i}", link=f"https://example.com/{i}") for i in range(5)]
        items = _classify(*raw)
        positions = [int(ID_PATTERN.match(item.id).group(1)) for item in items]
        self.assertEqual(positions, [0, 1, 2, 3, 4])
        self.assertEqual(len({item.id for item in items}), 5)

    def test_failing_item_is_skipped(self):
        classifier = ItemClassifier()
        parsed = parse_feed(
            build_rss_xml(
                [
                    build_rss_item("Broken", link="https://example.com/1"),
                    build_rss_item("Fine", link="https://example.com/2"),
                ]
            )
        )
        original = classifier.classify

        def flaky(raw, index=0):
            if index == 0:
                raise RuntimeError("boom")
            return original(raw, index)

        with patch.object(classifier, "classify", side_effect=flaky):
            items = classifier.classify_items(parsed.items)
        self.assertEqual([item.title for item in items], ["Fine"])

    def test_to_dict_uses_wire_names(self):
        (item,) = _classify(
            build_rss_item("Show", enclosure_url=TEST_SUBFEED_URL, enclosure_type=TEST_MIME_RSS)
        )
        data = item.to_dict()
        self.assertEqual(data["mimeTypeHint"], TEST_MIME_RSS)
        self.assertTrue(data["isFolder"])
        self.assertEqual(data["id"], item.id)


class TestMakeItemId(unittest.TestCase):
    def test_format(self):
        match = ID_PATTERN.match(make_item_id(7))
        self.assertIsNotNone(match)
        self.assertEqual(match.group(1), "7")


if __name__ == "__main__":
    unittest.main()
