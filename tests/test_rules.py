"""Tests for intent rules and extraction helpers."""

import pytest

from mailagent.rules import (
    RULES,
    InstructionText,
    find_audience_id,
    find_campaign_id,
    find_email,
    find_subject,
    find_tags,
    merge_tags,
    split_body,
)
from mailagent.schemas import ActionType


class TestExtractionHelpers:
    """Test extraction helpers."""

    def test_find_email_first_match(self):
        """First email-shaped token wins."""
        assert find_email("add a.b+x@mail.example.org and c@d.io") == "a.b+x@mail.example.org"

    def test_find_email_none(self):
        assert find_email("add nobody today") is None

    def test_find_campaign_id(self):
        assert find_campaign_id("send campaign 9a8b7c now") == "9a8b7c"

    def test_campaign_id_requires_digit(self):
        """Hex-only English words are not ids."""
        assert find_campaign_id("send the facade decade update") is None

    def test_campaign_id_minimum_length(self):
        assert find_campaign_id("send campaign 9a8b7") is None

    def test_campaign_id_ignores_emails(self):
        assert find_campaign_id("send to ops@abc123.io") is None

    def test_campaign_id_ignores_audience_ids(self):
        """Hex-looking audience ids are not campaign ids."""
        assert find_campaign_id("add x@y.com to audience 5e3f9a1b and send campaign 9a8b7c") == "9a8b7c"
        assert find_campaign_id("add x@y.com to list id: 5e3f9a1b") is None

    def test_find_subject(self):
        assert find_subject('create "Hello World" and "Other"') == "Hello World"

    def test_find_subject_skips_empty_quotes(self):
        assert find_subject('create "" then "Real"') == "Real"

    def test_split_body(self):
        """Text after the body marker is the body."""
        command, body = split_body('Create "X" with Body:  <p>Hi</p> ')
        assert command == 'Create "X" with '
        assert body == "<p>Hi</p>"

    def test_split_body_absent(self):
        assert split_body("Create campaign") == ("Create campaign", "")

    def test_find_audience_id(self):
        assert find_audience_id("add x@y.com to audience id: 1a2b3c4d5e") == "1a2b3c4d5e"

    def test_audience_id_needs_digit(self):
        """Words after 'list' are not audience ids."""
        assert find_audience_id("add x@y.com to my list and tag her") is None

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("tag her as partner.", ["partner"]),
            ("tag them with vip, beta and early access", ["vip", "beta", "early access"]),
            ('tagged as "Early Access"', ["Early Access"]),
            ("with tags alpha, beta", ["alpha", "beta"]),
            ("tag her as partner and send campaign 1a2b3c", ["partner"]),
        ],
    )
    def test_find_tags(self, text, expected):
        assert find_tags(text) == expected

    def test_find_tags_none(self):
        assert find_tags("add x@y.com to the list") == []

    def test_merge_tags_order_and_dedupe(self):
        """First group leads, duplicates and blanks drop out."""
        assert merge_tags(["a", "b", "a"], ["b", " ", "c"]) == ("a", "b", "c")


class TestInstructionText:
    """Test instruction normalization."""

    def test_normalized_masks_quotes_and_body(self):
        text = InstructionText.parse('Create "Send It" with body: <p>add</p>')
        assert text.normalized == 'create "" with '
        assert text.body == "<p>add</p>"
        assert text.command == 'Create "Send It" with '

    def test_empty_quotes_pair_up(self):
        """An empty pair of quotes does not swallow the words after it."""
        text = InstructionText.parse('Create "" then "Real"')
        assert text.normalized == 'create "" then ""'


class TestRuleTable:
    """Test rule table layout."""

    def test_precedence_order(self):
        assert [rule.action_type for rule in RULES] == [
            ActionType.SETTLE_CAMPAIGNS,
            ActionType.ADD_SUBSCRIBER,
            ActionType.CREATE_CAMPAIGN,
            ActionType.SEND_CAMPAIGN,
            ActionType.LIST_CAMPAIGNS,
            ActionType.LIST_AUDIENCES,
        ]

    def test_audience_rules(self):
        """Only subscriber and campaign creation need an audience."""
        requiring = {rule.action_type for rule in RULES if rule.requires_audience}
        assert requiring == {ActionType.ADD_SUBSCRIBER, ActionType.CREATE_CAMPAIGN}

    def test_rule_names_unique(self):
        names = [rule.name for rule in RULES]
        assert len(names) == len(set(names))
