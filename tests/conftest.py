"""Shared test fixtures for RSS Feed Aggregator tests."""

import pytest

from rssfeed_aggregator.models import Record, Source


SAMPLE_RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test Feed</title>
    <link>https://example.com</link>
    <description>A test RSS feed</description>
    <item>
      <title>First Article</title>
      <link>https://example.com/article-1</link>
      <guid>article-1</guid>
      <description>Description of the first article</description>
      <pubDate>Fri, 13 Feb 2026 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Second Article</title>
      <link>https://example.com/article-2</link>
      <guid>article-2</guid>
      <description>Description of the second article</description>
      <pubDate>Fri, 13 Feb 2026 09:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>"""

SAMPLE_ATOM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Test Atom Feed</title>
  <link href="https://example.org"/>
  <subtitle>A test Atom feed</subtitle>
  <entry>
    <title>Atom Entry 1</title>
    <link href="https://example.org/entry-1"/>
    <id>urn:uuid:entry-1</id>
    <summary>Summary of entry 1</summary>
    <updated>2026-02-13T10:00:00Z</updated>
  </entry>
</feed>"""

SAMPLE_DC_DATE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Dublin Core Feed</title>
    <link>https://dc.example.com</link>
    <item>
      <title>Dated by dc:date</title>
      <link>https://dc.example.com/post</link>
      <dc:date>2026-01-05T08:30:00+08:00</dc:date>
    </item>
    <item>
      <title>No date at all</title>
      <link>https://dc.example.com/undated</link>
    </item>
  </channel>
</rss>"""

SAMPLE_NOT_A_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<html>
  <body>This is not a feed</body>
</html>"""

SAMPLE_SOURCE_CSV = """Introduction, Address, RSS feed, tag
Alice's notes,https://alice.example.com,https://alice.example.com/feed.xml,life
Bob Blog,https://bob.example.com,https://bob.example.com/rss, tech
No feed here,https://nofeed.example.com,,misc
"""


@pytest.fixture
def sample_rss_xml():
    """Sample valid RSS 2.0 XML."""
    return SAMPLE_RSS_XML


@pytest.fixture
def sample_atom_xml():
    """Sample valid Atom XML."""
    return SAMPLE_ATOM_XML


@pytest.fixture
def sample_dc_date_xml():
    """RSS whose only dates are Dublin Core elements."""
    return SAMPLE_DC_DATE_XML


@pytest.fixture
def sample_not_a_feed_xml():
    """Sample XML that is not a feed."""
    return SAMPLE_NOT_A_FEED_XML


@pytest.fixture
def sample_source_csv():
    """Blog directory CSV with irregular headers."""
    return SAMPLE_SOURCE_CSV


@pytest.fixture
def source():
    return Source(feed_url="https://example.com/feed.xml", name="Example Blog")


@pytest.fixture
def make_record():
    """Factory for stored records with sensible defaults."""

    def _make(id="", link="https://example.com/a", createdat="2026-02-13T10:00:00.000Z", **kwargs):
        fields = {
            "title": "Title",
            "rsslink": "https://example.com/feed.xml",
            "blogname": "Example Blog",
            "crawledat": "2026-02-14T00:00:00.000Z",
        }
        fields.update(kwargs)
        return Record(id=str(id), link=link, createdat=createdat, **fields)

    return _make
