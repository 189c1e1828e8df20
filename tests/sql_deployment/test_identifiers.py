import pytest

from src.sql_deployment.identifiers import (
    format_database_target,
    format_publication_target,
    qualify_unc_host,
)


def test_format_targets():
    assert format_database_target("SRV1", "Orders") == "SRV1/Orders"
    assert format_publication_target("SRV1", "Orders", "OrdersPub") == "SRV1/Orders/OrdersPub"


def test_qualify_unc_host_appends_domain_to_bare_host():
    assert qualify_unc_host(r"\\sql01\ReplData\snap", "corp.local") == (
        r"\\sql01.corp.local\ReplData\snap"
    )


@pytest.mark.parametrize(
    "path, domain",
    [
        (r"\\sql01.corp.local\ReplData", "corp.local"),  # already qualified
        (r"C:\ReplData", "corp.local"),  # local path
        (r"\\sql01\ReplData", None),  # no domain known
        (r"\\sql01\ReplData", ""),
    ],
)
def test_qualify_unc_host_leaves_other_paths_unchanged(path, domain):
    assert qualify_unc_host(path, domain) == path
