import pytest

from azdoannotator.core.host import HostRegistry
from azdoannotator.core.location_parser import parse_azure_location


@pytest.fixture()
def registry():
    return HostRegistry.from_hosts(["example.com", "tfs.corp.local:8080"])


@pytest.mark.parametrize(
    "url,host_org,project_repo",
    [
        (
            "https://dev.azure.com/organization/project/_git/repository?path=%2Fcatalog-info.yaml",
            "dev.azure.com/organization",
            "project/repository",
        ),
        (
            "https://example.com/organization/project/_git/repository?path=%2Fcatalog-info.yaml",
            "example.com/organization",
            "project/repository",
        ),
        (
            "https://example.com/tfs/organization/project/_git/repository?path=%2Fcatalog-info.yaml",
            "example.com/tfs/organization",
            "project/repository",
        ),
        (
            "https://example.com/tfs/nested/organization/project/_git/repository",
            "example.com/tfs/nested/organization",
            "project/repository",
        ),
        ("http://dev.azure.com/org/proj/_git/repo/", "dev.azure.com/org", "proj/repo"),
        ("https://dev.azure.com//org//proj/_git//repo", "dev.azure.com/org", "proj/repo"),
        ("https://dev.azure.com/org/proj/_git/repo/pullrequest/42", "dev.azure.com/org", "proj/repo"),
        ("https://user@dev.azure.com/org/proj/_git/repo", "dev.azure.com/org", "proj/repo"),
        ("https://tfs.corp.local:8080/tfs/org/proj/_git/repo", "tfs.corp.local:8080/tfs/org", "proj/repo"),
    ],
)
def test_parse_azure_location(registry, url, host_org, project_repo):
    parsed = parse_azure_location(url, registry)
    assert parsed is not None
    assert parsed.host_org == host_org
    assert parsed.project_repo == project_repo


def test_parse_azure_location_segments(registry):
    parsed = parse_azure_location("https://example.com/tfs/organization/project/_git/repository", registry)
    assert parsed.host == "example.com"
    assert parsed.prefix == ("tfs",)
    assert parsed.organization == "organization"
    assert parsed.project == "project"
    assert parsed.repository == "repository"


def test_port_is_dropped_only_as_fallback():
    registry = HostRegistry.from_hosts(["example.com"])
    parsed = parse_azure_location("https://example.com:8443/org/proj/_git/repo", registry)
    assert parsed is not None
    assert parsed.host_org == "example.com:8443/org"


@pytest.mark.parametrize(
    "url",
    [
        "https://not-in-mock-config.example.com/backstage/backstage/-/blob/master/catalog-info.yaml",
        "https://github.com/org/proj/_git/repo",
        "https://sub.dev.azure.com/org/proj/_git/repo",
        "https://dev.azure.com.evil.com/org/proj/_git/repo",
        "https://DEV.AZURE.COM/org/proj/_git/repo",
        "https://dev.azure.com/org/proj/repo",
        "https://dev.azure.com/proj/_git/repo",
        "https://dev.azure.com/_git/repo",
        "https://dev.azure.com/org/proj/_git",
        "https://dev.azure.com/org/proj/_git/",
        "ftp://dev.azure.com/org/proj/_git/repo",
        "dev.azure.com/org/proj/_git/repo",
        "https://[::1/org/proj/_git/repo",
        "",
        "not a url",
    ],
)
def test_parse_azure_location_no_match(registry, url):
    assert parse_azure_location(url, registry) is None


def test_query_and_fragment_ignored(registry):
    parsed = parse_azure_location("https://dev.azure.com/org/proj/_git/repo?path=/a/_git/b#L10", registry)
    assert parsed.project_repo == "proj/repo"
