"""Tests for the catalog orchestrator."""

import os
from unittest.mock import Mock

import pytest

from jdkfetch.cancellation import CancellationToken
from jdkfetch.config import Config, DownloadConfig, SourcesConfig
from jdkfetch.download import orchestrator as orchestrator_module
from jdkfetch.download.base import BaseCatalogProvider
from jdkfetch.download.client import HttpClient
from jdkfetch.download.downloader import ArchiveDownloader
from jdkfetch.download.interfaces import (
    ArtifactLocation,
    DownloadOptions,
    ResolvedVersion,
)
from jdkfetch.download.orchestrator import (
    CatalogOrchestrator,
    artifact_file_name,
    options_from_config,
    target_platform_key,
)
from jdkfetch.download.providers import SourceName
from jdkfetch.download.registry import RegistryEntry, VersionRegistry
from jdkfetch.exceptions import (
    AllSourcesFailedError,
    CatalogFetchError,
    DownloadCancelledError,
    HTTPError,
    PlatformError,
    RegistryError,
    VersionNotFoundError,
    VersionSpecError,
)

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]

ARTIFACT = ArtifactLocation(url="https://m/jdk.tar.gz", size=10, sha256="ab" * 32)


def _provider(name, versions=None, error=None):
    provider = Mock(spec=BaseCatalogProvider)
    provider.name = name
    if error is not None:
        provider.resolve.side_effect = error
        provider.list_versions.side_effect = error
    else:
        provider.resolve.return_value = versions[0]
        provider.list_versions.return_value = versions
    provider.fetch.return_value = ARTIFACT
    return provider


@pytest.fixture
def providers(mocker):
    """Map of source name to mock provider, served by a patched create_provider."""
    table = {}
    mocker.patch.object(
        orchestrator_module,
        "create_provider",
        side_effect=lambda source, *_args, **_kwargs: table[source.value],
    )
    return table


@pytest.fixture
def orchestrator():
    orch = CatalogOrchestrator(client=Mock(spec=HttpClient))
    yield orch
    orch.close()


class TestHelpers:
    def test_options_from_config(self):
        options = options_from_config(
            DownloadConfig(retry_count=5, retry_delay_ms=10, chunk_size=4096),
            expected_checksum="ab" * 32,
        )

        assert options.retry_count == 5
        assert options.retry_delay_ms == 10
        assert options.chunk_size == 4096
        assert options.expected_checksum == "ab" * 32

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("linux-x64", "OpenJDK-21.0.4-linux-x64-tsinghua.tar.gz"),
            ("windows-x64", "OpenJDK-21.0.4-windows-x64-tsinghua.zip"),
        ],
    )
    def test_artifact_file_name(self, version_factory, key, expected):
        version = version_factory("21.0.4", source="tsinghua")
        assert artifact_file_name(version, key) == expected

    def test_target_platform_key_normalizes_aliases(self):
        assert target_platform_key("Darwin-ARM64") == "macos-aarch64"

    def test_target_platform_key_defaults_to_this_machine(self, mocker):
        mocker.patch.object(
            orchestrator_module.Platform,
            "current",
            return_value=orchestrator_module.Platform("linux", "aarch64"),
        )
        assert target_platform_key() == "linux-aarch64"

    def test_target_platform_key_unrecognized_machine(self, mocker):
        mocker.patch.object(
            orchestrator_module.Platform,
            "current",
            return_value=orchestrator_module.Platform("unknown", "x64"),
        )
        with pytest.raises(PlatformError, match="Could not detect"):
            target_platform_key()


class TestPriority:
    def test_configured_chain(self, orchestrator):
        assert orchestrator.priority() == [
            SourceName.TSINGHUA,
            SourceName.ALIYUN,
            SourceName.GITHUB,
        ]

    def test_override_is_deduplicated(self, orchestrator):
        assert orchestrator.priority(["github", "GitHub", "adoptium"]) == [
            SourceName.GITHUB,
            SourceName.ADOPTIUM,
        ]

    def test_providers_are_memoized(self, orchestrator):
        assert orchestrator.provider("github") is orchestrator.provider(SourceName.GITHUB)


class TestResolve:
    def test_first_source_wins(self, orchestrator, providers, version_factory):
        providers["tsinghua"] = _provider("tsinghua", [version_factory("21.0.4", source="tsinghua")])
        providers["aliyun"] = _provider("aliyun", [version_factory("21.0.4", source="aliyun")])

        resolved = orchestrator.resolve("21")

        assert resolved.source == "tsinghua"
        assert resolved.version.version == "21.0.4"
        providers["aliyun"].resolve.assert_not_called()

    def test_falls_through_failing_sources(self, orchestrator, providers, version_factory):
        providers["tsinghua"] = _provider(
            "tsinghua", error=CatalogFetchError("offline", source="tsinghua")
        )
        providers["aliyun"] = _provider(
            "aliyun", error=VersionNotFoundError("no match", spec="21")
        )
        providers["github"] = _provider("github", [version_factory("21.0.4")])

        resolved = orchestrator.resolve("21")

        assert resolved.source == "github"

    def test_all_sources_failing(self, orchestrator, providers):
        for name in ("tsinghua", "aliyun", "github"):
            providers[name] = _provider(name, error=CatalogFetchError("offline", source=name))

        with pytest.raises(AllSourcesFailedError) as exc_info:
            orchestrator.resolve("lts")

        assert [source for source, _ in exc_info.value.failures] == [
            "tsinghua",
            "aliyun",
            "github",
        ]
        assert isinstance(exc_info.value.last_error, CatalogFetchError)

    def test_malformed_spec_consults_no_source(self, orchestrator, providers):
        with pytest.raises(VersionSpecError):
            orchestrator.resolve("")
        assert providers == {}


class TestDownload:
    def test_default_destination(self, orchestrator, providers, version_factory):
        version = version_factory("21.0.4", source="tsinghua")
        providers["tsinghua"] = _provider("tsinghua", [version])

        orchestrator.download(ResolvedVersion(version=version, source="tsinghua"), "linux-x64")

        kwargs = providers["tsinghua"].fetch.call_args.kwargs
        assert kwargs["destination"] == os.path.join(
            orchestrator.config.download.resolved_directory(),
            "OpenJDK-21.0.4-linux-x64-tsinghua.tar.gz",
        )
        assert kwargs["options"].retry_count == orchestrator.config.download.retry_count

    def test_in_memory_ignores_destination(self, orchestrator, providers, version_factory):
        version = version_factory("21.0.4", source="github")
        providers["github"] = _provider("github", [version])

        orchestrator.download(version, "linux-x64", destination="/tmp/x", in_memory=True)

        assert providers["github"].fetch.call_args.kwargs["destination"] is None


class TestFetch:
    def test_download_failure_moves_to_next_source(
        self, orchestrator, providers, version_factory
    ):
        providers["tsinghua"] = _provider(
            "tsinghua", [version_factory("21.0.4", source="tsinghua")]
        )
        providers["tsinghua"].fetch.side_effect = HTTPError("gone", status_code=404)
        providers["aliyun"] = _provider("aliyun", [version_factory("21.0.4", source="aliyun")])

        result = orchestrator.fetch("21", "linux-x64")

        assert result.resolved.source == "aliyun"
        assert result.artifact is ARTIFACT

    def test_cancellation_stops_the_walk(self, orchestrator, providers, version_factory):
        providers["tsinghua"] = _provider(
            "tsinghua", [version_factory("21.0.4", source="tsinghua")]
        )
        providers["tsinghua"].fetch.side_effect = DownloadCancelledError("cancelled")
        providers["aliyun"] = _provider("aliyun", [version_factory("21.0.4", source="aliyun")])

        with pytest.raises(DownloadCancelledError):
            orchestrator.fetch("21", "linux-x64", cancel_token=CancellationToken())
        providers["aliyun"].resolve.assert_not_called()

    def test_every_source_failing(self, orchestrator, providers, version_factory):
        for name in ("tsinghua", "aliyun", "github"):
            providers[name] = _provider(name, [version_factory("21.0.4", source=name)])
            providers[name].fetch.side_effect = HTTPError("boom", status_code=500)

        with pytest.raises(AllSourcesFailedError) as exc_info:
            orchestrator.fetch("21", "linux-x64")
        assert len(exc_info.value.failures) == 3


class TestMirrorFallbackEndToEnd:
    """Real providers over a registry; only the network edges are mocked."""

    @pytest.fixture
    def registry(self):
        return VersionRegistry(
            path="/etc/java_versions.toml",
            entries=[
                RegistryEntry(
                    version="21.0.4",
                    major=21,
                    tag_name="jdk-21.0.4+7",
                    lts=True,
                    assets={"linux-x64": "OpenJDK21U-jdk_x64_linux_hotspot_21.0.4_7.tar.gz"},
                    checksums={"linux-x64": "ab" * 32},
                )
            ],
        )

    def test_unreachable_mirror_downloads_upstream(self, mocker, registry, tmp_path):
        client = Mock(spec=HttpClient)
        client.probe.return_value = (False, 503)
        download = mocker.patch.object(
            ArchiveDownloader, "download_to_file", return_value=ARTIFACT
        )
        config = Config(download=DownloadConfig(directory=str(tmp_path)))

        with CatalogOrchestrator(config, client=client, registry=registry) as orch:
            result = orch.fetch("lts", "linux-x64")

        assert result.resolved.source == "tsinghua"
        url, destination, options = download.call_args.args[:3]
        assert url == (
            "https://github.com/adoptium/temurin21-binaries/releases/download/"
            "jdk-21.0.4%2B7/OpenJDK21U-jdk_x64_linux_hotspot_21.0.4_7.tar.gz"
        )
        assert destination == str(tmp_path / "OpenJDK-21.0.4-linux-x64-tsinghua.tar.gz")
        assert isinstance(options, DownloadOptions)
        assert options.expected_checksum == "ab" * 32
        client.get_json.assert_not_called()

    def test_registry_only_without_registry(self):
        config = Config(sources=SourcesConfig(registry_only=True))

        with pytest.raises(RegistryError):
            CatalogOrchestrator(config, client=Mock(spec=HttpClient))


class TestListAllSources:
    def test_collects_versions_and_failures(self, orchestrator, providers, version_factory):
        providers["github"] = _provider("github", [version_factory("21.0.4")])
        providers["adoptium"] = _provider(
            "adoptium", error=CatalogFetchError("offline", source="adoptium")
        )

        listing = orchestrator.list_all_sources(["github", "adoptium"])

        assert list(listing.versions) == ["github"]
        assert list(listing.failures) == ["adoptium"]


class TestCacheMaintenance:
    def test_delegates_to_cache(self, orchestrator, mocker):
        cleanup = mocker.patch.object(orchestrator.cache, "cleanup_expired", return_value=2)
        clear = mocker.patch.object(orchestrator.cache, "clear", return_value=5)

        assert orchestrator.cleanup_cache() == 2
        assert orchestrator.clear_cache() == 5
        cleanup.assert_called_once()
        clear.assert_called_once()

    def test_close_leaves_injected_client_open(self):
        client = Mock(spec=HttpClient)

        CatalogOrchestrator(client=client).close()

        client.close.assert_not_called()
