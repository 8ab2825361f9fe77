"""Tests for the command line interface (``blog_scout.cli``) via click.testing.CliRunner.
They cover ``discover``, ``analyze``, ``config``, ``--version`` and the error paths.
"""
import json

import pytest
from click.testing import CliRunner

import blog_scout.cli as cli_module
from blog_scout.aggregator import aggregate
from blog_scout.cli import cli
from blog_scout.crawler.models import CandidateDocument, DiscoveryResult, Source
from blog_scout.logger import configure
from blog_scout.scheduler import BatchResult, Success


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI rebinds the logger to CliRunner's temporary stderr; reset it afterwards."""
    yield
    configure(level="WARNING")


@pytest.fixture()
def fake_scout(monkeypatch):
    """Replace start_scout with a canned report and record how it was called."""
    calls = []

    async def fake_start_scout(config, domain, worker=None, **kwargs):
        calls.append({"config": config, "domain": domain, "worker": worker, **kwargs})
        discovery = DiscoveryResult(
            posts=(CandidateDocument("https://example.com/blog/first-post"),),
            total_found=3,
            source=Source.FEED,
        )
        batch = None
        if worker is not None:
            url = discovery.posts[0].url
            batch = BatchResult(successes={url: Success(url, worker(url))})
        return aggregate(domain, discovery, batch)

    monkeypatch.setattr(cli_module, "start_scout", fake_start_scout)
    return calls


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "BlogScout" in result.stdout


def test_show_config_defaults():
    result = CliRunner().invoke(cli, ["config"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["batch"] == {"concurrency": 3, "item_timeout": 30.0}
    assert data["discovery"]["fetch"]["max_attempts"] == 3


def test_show_config_from_file(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("discovery:\n  default_limit: 10\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["discovery"]["default_limit"] == 10


def test_bad_config_file(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("batch:\n  concurrency: -1\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Could not load configuration" in result.stderr


def test_discover_stdout(fake_scout):
    result = CliRunner().invoke(cli, ["discover", "example.com", "--limit", "5", "--timeout", "9"])
    assert result.exit_code == 0
    output = json.loads(result.stdout)
    assert output["domain"] == "example.com"
    assert output["discovery"]["source"] == "feed"
    assert output["discovery"]["posts"][0]["url"] == "https://example.com/blog/first-post"
    assert output["batch"] is None
    assert fake_scout[0]["limit"] == 5
    assert fake_scout[0]["timeout"] == 9.0
    assert fake_scout[0]["worker"] is None


def test_discover_json_file(tmp_path, fake_scout):
    out = tmp_path / "reports" / "out.json"
    result = CliRunner().invoke(cli, ["discover", "example.com", "--json", str(out)])
    assert result.exit_code == 0
    assert out.exists()
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["discovery"]["total_found"] == 3


def test_discover_invalid_domain():
    result = CliRunner().invoke(cli, ["discover", "not a domain"])
    assert result.exit_code == 1
    assert "not a domain" in result.stderr
    assert result.stdout == ""


def test_discover_rejects_zero_limit():
    result = CliRunner().invoke(cli, ["discover", "example.com", "--limit", "0"])
    assert result.exit_code == 2


def test_analyze_with_worker(fake_scout):
    result = CliRunner().invoke(
        cli,
        ["analyze", "example.com", "--worker", "os.path:basename", "--concurrency", "2",
         "--item-timeout", "4", "--deadline", "60", "--quiet"],
    )
    assert result.exit_code == 0
    output = json.loads(result.stdout)
    assert output["batch"]["successes"] == [
        {"url": "https://example.com/blog/first-post", "result": "first-post", "last_modified": None}
    ]
    call = fake_scout[0]
    assert call["config"].batch.concurrency == 2
    assert call["config"].batch.item_timeout == 4.0
    assert call["timeout"] == 60.0
    assert call["on_progress"] is None


@pytest.mark.parametrize("spec", ["os.path", "no_such_module_xyz:run", "os.path:not_there"])
def test_analyze_bad_worker(spec, fake_scout):
    result = CliRunner().invoke(cli, ["analyze", "example.com", "--worker", spec])
    assert result.exit_code == 2
    assert fake_scout == []
