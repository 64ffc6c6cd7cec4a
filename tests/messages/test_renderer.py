import pytest

from campaign_processor.config import MessageTemplates, TemplateBundle
from campaign_processor.errors import NoLinksForProspectError
from campaign_processor.messages import (
    generate_messages,
    message_previews,
    message_statistics,
    render_message,
    replace_template_variables,
    validate_messages,
)
from campaign_processor.models import GroupedLink, ProspectLinkGroup


def _group(prospect, *links):
    return ProspectLinkGroup(
        prospect_id=prospect.id,
        company=prospect.company,
        business_type=prospect.business_type,
        urls=[
            GroupedLink(original_url=f"https://demo.test/{index}", display_name=name, site_index=index, short_url=url)
            for index, (name, url) in enumerate(links)
        ],
    )


def test_replace_template_variables_is_literal():
    variables = {"company": "Cash $1 \\1 Co", "city": "Austin"}

    assert replace_template_variables("{company} / {company} in {city}", variables) == (
        "Cash $1 \\1 Co / Cash $1 \\1 Co in Austin"
    )
    assert replace_template_variables("{unknown} {company", variables) == "{unknown} {company"


def test_render_message_uses_category_override(make_prospect, templates):
    prospect = make_prospect(1)
    group = _group(prospect, ("Classic", "https://s.test/a"), ("Modern", "https://s.test/b"))

    message = render_message(prospect, group, templates)

    assert message == (
        "Hi Smith Plumbing!\n\n"
        "Plumbers in Austin need Smith Plumbing online.\n\n"
        "Plumbing demos:\n"
        "- Classic: https://s.test/a\n"
        "- Modern: https://s.test/b"
    )


def test_render_message_falls_back_to_default_bundle(make_prospect, templates):
    prospect = make_prospect(2, company="Leafy", city="Denver", business_type="landscaping")
    group = _group(prospect, ("Green", "https://s.test/g"))

    message = render_message(prospect, group, templates)

    assert message == (
        "Hi Leafy!\n\nWebsites for landscaping businesses in Denver.\n\nDemos:\n- Green: https://s.test/g"
    )


def test_render_message_drops_empty_parts(make_prospect):
    templates = MessageTemplates(
        default=TemplateBundle(
            greeting="Hello {company}",
            intro="",
            demo_section_header="",
            demo_link_format="{short_url}",
        )
    )
    prospect = make_prospect(1)
    group = _group(prospect, ("Classic", "https://s.test/a"), ("Modern", "https://s.test/b"))

    message = render_message(prospect, group, templates)

    assert message == "Hello Smith Plumbing\n\nhttps://s.test/a\nhttps://s.test/b"
    assert "\n\n\n" not in message


def test_render_message_uses_original_url_when_not_shortened(make_prospect, templates):
    prospect = make_prospect(1)
    group = _group(prospect, ("Classic", None))

    assert "- Classic: https://demo.test/0" in render_message(prospect, group, templates)


@pytest.mark.parametrize("with_group", [False, True])
def test_render_message_requires_links(make_prospect, templates, with_group):
    prospect = make_prospect(5)
    group = _group(prospect) if with_group else None

    with pytest.raises(NoLinksForProspectError, match="No URLs found for prospect prospect_0005"):
        render_message(prospect, group, templates)


def test_generate_messages_keeps_one_result_per_prospect(make_prospect, templates, reporter):
    first = make_prospect(1)
    second = make_prospect(2, company="Orphan Co", business_type="general")
    groups = {first.id: _group(first, ("Classic", "https://s.test/a"))}

    results = generate_messages([first, second], groups, templates, reporter=reporter)

    assert [result.prospect.id for result in results] == ["prospect_0001", "prospect_0002"]
    assert not results[0].has_error
    assert [link.short_url for link in results[0].demo_urls] == ["https://s.test/a"]
    assert results[1].whatsapp_message == (
        "ERROR: Could not generate message - No URLs found for prospect prospect_0002"
    )
    assert results[1].demo_urls == []
    assert reporter.messages("warning") == ["1 messages had errors"]


def test_generate_messages_never_raises(make_prospect):
    class BrokenTemplates:
        def part(self, business_type, name):
            raise RuntimeError("template store offline")

    prospect = make_prospect(1)
    groups = {prospect.id: _group(prospect, ("Classic", "https://s.test/a"))}

    results = generate_messages([prospect], groups, BrokenTemplates())

    assert results[0].whatsapp_message == "ERROR: Could not generate message - template store offline"


def test_message_reporting_helpers(make_prospect, templates):
    first = make_prospect(1)
    second = make_prospect(2, company="Orphan Co", business_type="general")
    groups = {first.id: _group(first, ("Classic", "https://s.test/a"), ("Modern", "https://s.test/b"))}
    results = generate_messages([first, second], groups, templates)

    previews = message_previews(results, 1)
    assert len(previews) == 1
    assert previews[0].company == "Smith Plumbing"
    assert previews[0].demo_urls_count == 2
    assert previews[0].message_preview.endswith("...")

    validation = validate_messages(results)
    assert validation.total_messages == 2
    assert validation.valid_messages == 1
    assert validation.messages_with_errors == 1
    assert validation.length_distribution["short"] == 2
    assert validation.url_count_distribution == {2: 1, 0: 1}
    assert "Orphan Co: Message doesn't include city name" in validation.errors

    stats = message_statistics(results)
    assert stats.total_prospects == 2
    assert stats.total_demo_links == 2
    assert stats.average_demo_links == 1.0
    assert stats.business_type_breakdown["plumbing"].count == 1
    assert stats.longest_message.company == "Smith Plumbing"
    assert stats.shortest_message.company == "Orphan Co"
