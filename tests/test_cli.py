"""Tests for the typer command-line interface."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image
from typer.testing import CliRunner

from tile_mosaic.cli import app

runner = CliRunner()


@pytest.fixture
def library_dir(tmp_path: Path) -> Path:
    root = tmp_path / "library"
    (root / "primaries").mkdir(parents=True)
    for name, color in [("red", (255, 0, 0)), ("green", (0, 255, 0)), ("blue", (0, 0, 255))]:
        Image.new("RGBA", (16, 16), (*color, 255)).save(root / "primaries" / f"{name}.png")
    return root


@pytest.fixture
def source_image(tmp_path: Path) -> Path:
    p = tmp_path / "photo.png"
    Image.new("RGB", (60, 40), (10, 240, 20)).save(p)
    return p


class TestGenerate:
    def test_writes_mosaic(
        self, tmp_path: Path, library_dir: Path, source_image: Path,
    ) -> None:
        out = tmp_path / "out" / "mosaic.png"
        result = runner.invoke(app, [
            "generate", str(source_image),
            "--output", str(out),
            "--library", str(library_dir),
            "--tile-size", "20",
            "--output-tile", "16",
        ])
        assert result.exit_code == 0, result.output
        img = Image.open(out)
        assert img.size == (48, 32)
        assert img.convert("RGB").getpixel((8, 8)) == (0, 255, 0)

    def test_comparison(
        self, tmp_path: Path, library_dir: Path, source_image: Path,
    ) -> None:
        out = tmp_path / "mosaic.png"
        result = runner.invoke(app, [
            "generate", str(source_image), "-o", str(out),
            "-l", str(library_dir), "--comparison", "--matcher", "kdtree",
        ])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "mosaic_comparison.png").exists()

    def test_too_small_fails(
        self, tmp_path: Path, library_dir: Path, source_image: Path,
    ) -> None:
        result = runner.invoke(app, [
            "generate", str(source_image), "-o", str(tmp_path / "m.png"),
            "-l", str(library_dir), "--tile-size", "50",
        ])
        assert result.exit_code == 1
        assert not (tmp_path / "m.png").exists()

    def test_unknown_output_format(
        self, tmp_path: Path, library_dir: Path, source_image: Path,
    ) -> None:
        out = tmp_path / "m.xyz"
        result = runner.invoke(app, [
            "generate", str(source_image), "-o", str(out), "-l", str(library_dir),
        ])
        assert result.exit_code == 1
        assert "Unsupported output format" in result.output
        assert "Traceback" not in result.output
        assert not out.exists()

    def test_empty_library(self, tmp_path: Path, source_image: Path) -> None:
        result = runner.invoke(app, [
            "generate", str(source_image), "-l", str(tmp_path / "empty"),
        ])
        assert result.exit_code == 1

    def test_bad_matcher(
        self, tmp_path: Path, library_dir: Path, source_image: Path,
    ) -> None:
        result = runner.invoke(app, [
            "generate", str(source_image), "-l", str(library_dir),
            "--matcher", "octree",
        ])
        assert result.exit_code == 1


class TestBatch:
    def test_processes_folder(
        self, tmp_path: Path, library_dir: Path, source_image: Path,
    ) -> None:
        input_dir = source_image.parent
        output_dir = tmp_path / "results"
        result = runner.invoke(app, [
            "batch", "-i", str(input_dir), "-o", str(output_dir),
            "-l", str(library_dir), "--no-comparison",
        ])
        assert result.exit_code == 0, result.output
        assert (output_dir / "photo_mosaic.png").exists()


class TestIndex:
    def test_summary(self, library_dir: Path) -> None:
        result = runner.invoke(app, ["index", "--library", str(library_dir)])
        assert result.exit_code == 0, result.output
        assert "primaries" in result.output
        assert "Indexed: 3" in result.output
