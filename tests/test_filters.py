"""Unit tests for the role and location filters."""

import pytest

from jobhunter.normalization import passes_location_filter, passes_role_filter
from tests.helpers import make_config, make_posting


@pytest.fixture
def filters():
    return make_config().filters


class TestRoleFilter:
    """Tests for passes_role_filter()."""

    @pytest.mark.parametrize(
        "title",
        ["Senior Backend Engineer", "Python Developer", "Staff Software Engineer, Platform"],
    )
    def test_included_titles_pass(self, filters, title):
        assert passes_role_filter(make_posting(title=title), filters)

    @pytest.mark.parametrize(
        "title",
        ["Engineering Manager", "Software Engineer Intern", "Product Designer"],
    )
    def test_other_titles_fail(self, filters, title):
        assert not passes_role_filter(make_posting(title=title), filters)

    def test_matching_is_case_insensitive(self, filters):
        assert passes_role_filter(make_posting(title="BACKEND ENGINEER"), filters)
        assert not passes_role_filter(make_posting(title="ENGINEERING MANAGER"), filters)

    def test_no_include_terms_rejects_everything(self):
        filters = make_config(filters={"include_titles": []}).filters
        assert not passes_role_filter(make_posting(), filters)


class TestLocationFilter:
    """Tests for passes_location_filter()."""

    def test_home_location_passes_even_when_onsite(self, filters):
        posting = make_posting(location="Toronto, ON", description="Hybrid, 3 days in office. #LI-Onsite")
        assert passes_location_filter(posting, filters)

    def test_regional_location_passes(self, filters):
        assert passes_location_filter(make_posting(location="Vancouver, Canada"), filters)
        assert passes_location_filter(make_posting(location="Anywhere in North America"), filters)

    def test_remote_location_passes(self, filters):
        assert passes_location_filter(make_posting(location="Remote"), filters)

    def test_remote_in_description_passes(self, filters):
        posting = make_posting(location=None, description="This is a remote role for the whole team.")
        assert passes_location_filter(posting, filters)

    def test_remote_with_hybrid_description_fails(self, filters):
        posting = make_posting(location="Remote", description="We offer a hybrid work schedule.")
        assert not passes_location_filter(posting, filters)

    def test_regional_onsite_fails(self, filters):
        assert not passes_location_filter(make_posting(location="Montreal, Canada (On-site)"), filters)

    def test_other_region_fails(self, filters):
        assert not passes_location_filter(make_posting(location="San Francisco, CA"), filters)

    def test_missing_location_without_remote_signal_fails(self, filters):
        assert not passes_location_filter(make_posting(location=None), filters)
