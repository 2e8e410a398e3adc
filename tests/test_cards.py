"""Tests for card rendering."""
import pytest

from dialog_engine.cards import Template, render_attachment


class TestRenderAttachment:
    def test_hero_card(self):
        attachment = render_attachment(Template.HERO, {
            "title": "Menu",
            "text": "Pick one",
            "images": [{"url": "https://example.com/a.png", "alt": "A"}],
            "buttons": [{"title": "1. First", "value": "1"}, {"title": "2. Second", "value": "2"}],
        })

        assert attachment.content_type == "application/vnd.microsoft.card.hero"
        assert attachment.content["title"] == "Menu"
        assert attachment.content["subtitle"] is None
        assert attachment.content["images"] == [{"url": "https://example.com/a.png", "alt": "A"}]
        assert attachment.content["buttons"][1] == {"type": "postBack", "title": "2. Second", "value": "2"}

    def test_text_is_escaped_as_json(self):
        attachment = render_attachment(Template.THUMBNAIL, {"title": 'Say "hi"\nthen leave'})

        assert attachment.content_type == "application/vnd.microsoft.card.thumbnail"
        assert attachment.content["title"] == 'Say "hi"\nthen leave'

    def test_adaptive_card(self):
        attachment = render_attachment(Template.ADAPTIVE, {
            "title": "Locations",
            "text": "Pick one",
            "images": [{"url": "https://example.com/map.png"}],
            "buttons": [{"title": "Seattle", "value": {"location": "Seattle"}}],
        })

        content = attachment.content
        assert content["type"] == "AdaptiveCard"
        assert [block["type"] for block in content["body"]] == ["TextBlock", "TextBlock", "Image"]
        assert content["actions"] == [
            {"type": "Action.Submit", "title": "Seattle", "data": {"location": "Seattle"}}
        ]

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown card kind"):
            render_attachment("receipt", {})
