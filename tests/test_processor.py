from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from conftest import make_image
from mipatlas.errors import GenerationError, ImageLoadError, PrimitiveError
from mipatlas.mipmapping import primitives
from mipatlas.mipmapping.builder import MipChainBuilder
from mipatlas.mipmapping.composer import AtlasComposer
from mipatlas.mipmapping.processor import ImageJob, MipmapProcessor
from mipatlas.models import FilterMode, PipelineState


def write_input(tmp_path: Path, name: str, width: int, height: int, seed: int = 0) -> Path:
    path = tmp_path / name
    make_image(width, height, seed).save(path)
    return path


def test_process_writes_atlas(context, tmp_path):
    source = write_input(tmp_path, "tex.png", 32, 16)
    job = ImageJob(input_path=source, output_path=tmp_path / "tex_mipmap.png")

    processor = MipmapProcessor(context)
    result = processor.process(job, FilterMode.LINEAR)

    assert processor.state == PipelineState.SAVED
    assert result.state == PipelineState.SAVED
    assert (result.atlas_width, result.atlas_height) == (48, 16)
    assert result.level_sizes == [(16, 8), (8, 4), (4, 2), (2, 1), (1, 1)]
    assert [(p.x, p.y) for p in result.placements] == [
        (32, 0), (32, 8), (32, 12), (32, 14), (32, 15),
    ]

    with Image.open(result.output_path) as atlas:
        assert atlas.format == "PNG"
        assert atlas.mode == "RGBA"
        assert atlas.size == (48, 16)
        with Image.open(source) as original:
            assert np.array_equal(
                np.asarray(atlas)[:16, :32], np.asarray(original.convert("RGBA"))
            )
    assert context.live_images == 0


def test_process_writes_gray_and_levels(context, tmp_path):
    source = write_input(tmp_path, "rock.png", 8, 8)
    job = ImageJob(input_path=source, output_path=tmp_path / "out" / "rock.png")
    job.output_path.parent.mkdir()

    result = MipmapProcessor(context).process(
        job, FilterMode.NEAREST, write_gray=True, levels_dir=tmp_path / "levels"
    )

    assert result.gray_path == tmp_path / "out" / "rock.pgm"
    with Image.open(result.gray_path) as gray:
        assert gray.mode == "L"
        assert gray.size == (12, 8)

    assert [p.name for p in result.level_paths] == ["rock_mip0.png", "rock_mip1.png", "rock_mip2.png"]
    with Image.open(result.level_paths[0]) as level:
        assert level.size == (4, 4)
    assert context.live_images == 0


def test_load_failure_marks_pipeline_failed(context, tmp_path):
    processor = MipmapProcessor(context)
    job = ImageJob(input_path=tmp_path / "missing.png", output_path=tmp_path / "o.png")
    with pytest.raises(ImageLoadError):
        processor.process(job, FilterMode.LINEAR)
    assert processor.state == PipelineState.FAILED


def test_resize_failure_never_reaches_copy(context, tmp_path):
    resize_calls = []
    copy_calls = []

    def failing_resize(ctx, src, rect, w, h, filter_mode):
        resize_calls.append((w, h))
        if len(resize_calls) == 3:
            raise PrimitiveError("simulated resize failure")
        return primitives.resize(ctx, src, rect, w, h, filter_mode)

    def spy_copy(ctx, src, dst, offset):
        copy_calls.append(offset)
        primitives.copy_region(ctx, src, dst, offset)

    processor = MipmapProcessor(
        context,
        builder=MipChainBuilder(context, resize=failing_resize),
        composer=AtlasComposer(context, copy_region=spy_copy),
    )
    source = write_input(tmp_path, "five.png", 32, 32)
    output = tmp_path / "five_mipmap.png"

    with pytest.raises(GenerationError) as excinfo:
        processor.process(ImageJob(source, output), FilterMode.LINEAR)

    assert excinfo.value.path == source
    assert str(source) in str(excinfo.value)
    assert resize_calls == [(16, 16), (8, 8), (4, 4)]
    assert copy_calls == []
    assert not output.exists()
    assert processor.state == PipelineState.FAILED
    assert context.live_images == 0


def test_batch_stops_at_first_failure(context, tmp_path):
    first = write_input(tmp_path, "a.png", 4, 4)
    third = write_input(tmp_path, "c.png", 4, 4)
    jobs = [
        ImageJob(first, tmp_path / "a_out.png"),
        ImageJob(tmp_path / "b.png", tmp_path / "b_out.png"),
        ImageJob(third, tmp_path / "c_out.png"),
    ]

    with pytest.raises(ImageLoadError):
        MipmapProcessor(context).process_batch(jobs, FilterMode.LINEAR)

    assert (tmp_path / "a_out.png").exists()
    assert not (tmp_path / "c_out.png").exists()


def test_batch_processes_every_job(context, tmp_path):
    jobs = [
        ImageJob(write_input(tmp_path, f"{i}.png", 8, 4, seed=i), tmp_path / f"{i}_out.png")
        for i in range(3)
    ]
    results = MipmapProcessor(context).process_batch(jobs, FilterMode.CUBIC)
    assert [r.output_path for r in results] == [job.output_path for job in jobs]
    assert all(r.filter_mode == FilterMode.CUBIC for r in results)
