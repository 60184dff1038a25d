import json
import stat
from pathlib import Path

from click.testing import CliRunner

from meet_torture.cli import cli


def write_script(tmp_path: Path, psnr: str) -> Path:
    p = tmp_path / "psnr-test.sh"
    p.write_text(
        "#!/bin/sh\n"
        'n=$(basename "$1" .png)\n'
        "n=${n##*-}\n"
        f'echo "$((n + 1)) {psnr}"\n',
        encoding="utf-8",
    )
    p.chmod(p.stat().st_mode | stat.S_IEXEC)
    return p


def write_frames(tmp_path: Path, count: int) -> Path:
    d = tmp_path / "frames"
    d.mkdir()
    for i in range(count):
        (d / f"remoteVideo_a-{i}.png").write_bytes(b"png")
    return d


def test_cli_platform():
    result = CliRunner().invoke(cli, ["platform"])
    assert result.exit_code == 0
    assert '"is_linux"' in result.output and '"is_mac"' in result.output


def test_cli_config_lists_settings():
    result = CliRunner().invoke(cli, ["config"])
    assert result.exit_code == 0
    assert '"PSNR_MIN"' in result.output
    assert '"POLL_INTERVAL"' in result.output


def test_cli_psnr_scores_directory(tmp_path: Path):
    script = write_script(tmp_path, "31.0")
    frames = write_frames(tmp_path, 3)
    out = tmp_path / "report.json"
    result = CliRunner().invoke(
        cli, ["psnr", str(frames), "--script", str(script), "--json-out", str(out)]
    )
    assert result.exit_code == 0, result.output
    assert '"totalFrames": 3' in result.output
    assert json.loads(out.read_text(encoding="utf-8"))["psnr"] == 31.0


def test_cli_psnr_flags_low_frames(tmp_path: Path):
    script = write_script(tmp_path, "12.5")
    frames = write_frames(tmp_path, 2)
    result = CliRunner().invoke(cli, ["psnr", str(frames), "--script", str(script), "--min-psnr", "22"])
    assert result.exit_code == 1
    assert result.output.count("LOW ") == 2


def test_cli_psnr_reports_script_failure(tmp_path: Path):
    script = tmp_path / "broken.sh"
    script.write_text("#!/bin/sh\nexit 4\n", encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    frames = write_frames(tmp_path, 1)
    result = CliRunner().invoke(cli, ["psnr", str(frames), "--script", str(script)])
    assert result.exit_code == 1
    assert "ERR " in result.output


def test_cli_psnr_without_frames(tmp_path: Path):
    empty = tmp_path / "empty"
    empty.mkdir()
    result = CliRunner().invoke(cli, ["psnr", str(empty)])
    assert result.exit_code == 2
    assert "No frames found." in result.output


def test_cli_psnr_orders_frames_numerically(tmp_path: Path):
    script = write_script(tmp_path, "30.0")
    frames = write_frames(tmp_path, 12)
    out = tmp_path / "report.json"
    result = CliRunner().invoke(
        cli, ["psnr", str(frames), "--script", str(script), "--json-out", str(out)]
    )
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["totalFrames"] == 12
    assert data["numSkippedFrames"] == 0
    assert data["numFrozenFrames"] == 0


def test_cli_psnr_scores_each_stream_separately(tmp_path: Path):
    script = write_script(tmp_path, "30.0")
    frames = tmp_path / "frames"
    frames.mkdir()
    for vid, count in (("remoteVideo_a", 3), ("remoteVideo_b", 2)):
        for i in range(count):
            (frames / f"{vid}-{i}.png").write_bytes(b"png")
    out = tmp_path / "report.json"
    result = CliRunner().invoke(
        cli, ["psnr", str(frames), "--script", str(script), "--json-out", str(out)]
    )
    assert result.exit_code == 0, result.output
    a = json.loads((tmp_path / "report-remoteVideo_a.json").read_text(encoding="utf-8"))
    b = json.loads((tmp_path / "report-remoteVideo_b.json").read_text(encoding="utf-8"))
    assert (a["totalFrames"], a["numSkippedFrames"]) == (3, 0)
    assert (b["totalFrames"], b["numSkippedFrames"]) == (2, 0)
    assert not out.exists()


def test_cli_psnr_reports_unparseable_output(tmp_path: Path):
    script = tmp_path / "garbage.sh"
    script.write_text('#!/bin/sh\necho "not a score"\n', encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    frames = write_frames(tmp_path, 1)
    result = CliRunner().invoke(cli, ["psnr", str(frames), "--script", str(script)])
    assert result.exit_code == 1
    assert "ERR " in result.output
