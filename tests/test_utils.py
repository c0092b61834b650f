import pytest

from mipatlas.mipmapping.utils import atlas_size, level_offsets, mip_level_sizes


def expected_chain_length(width, height):
    step = 2
    count = 1
    while width // step > 1 or height // step > 1:
        step *= 2
        count += 1
    return count


def test_square_power_of_two_chain():
    sizes = list(mip_level_sizes(256, 256))
    assert sizes == [(128, 128), (64, 64), (32, 32), (16, 16), (8, 8), (4, 4), (2, 2), (1, 1)]
    assert atlas_size(256, 256, sizes) == (384, 256)


def test_small_square_chain_and_offsets():
    sizes = list(mip_level_sizes(4, 4))
    assert sizes == [(2, 2), (1, 1)]
    assert atlas_size(4, 4, sizes) == (6, 4)
    assert level_offsets(4, sizes) == [(4, 0), (4, 2)]


def test_single_pixel_source_gives_one_level():
    assert list(mip_level_sizes(1, 1)) == [(1, 1)]


@pytest.mark.parametrize("width", [1, 2, 3, 5, 7, 16, 31, 100, 257])
@pytest.mark.parametrize("height", [1, 2, 3, 6, 33, 64, 129])
def test_chain_shape(width, height):
    sizes = list(mip_level_sizes(width, height))

    assert len(sizes) == expected_chain_length(width, height)
    for k, (w, h) in enumerate(sizes):
        assert w == max(1, width // 2 ** (k + 1))
        assert h == max(1, height // 2 ** (k + 1))

    last_w, last_h = sizes[-1]
    assert last_w <= 1 and last_h <= 1
    assert all(w > 1 or h > 1 for w, h in sizes[:-1])


@pytest.mark.parametrize("width,height", [(2, 2), (3, 5), (10, 7), (64, 33), (100, 50), (255, 255)])
def test_atlas_keeps_fixed_size_when_levels_fit(width, height):
    sizes = list(mip_level_sizes(width, height))
    assert atlas_size(width, height, sizes) == (width + width // 2, height)


def test_atlas_grows_for_elongated_source():
    sizes = list(mip_level_sizes(8, 1))
    assert sizes == [(4, 1), (2, 1), (1, 1)]
    # Stacked height 3 does not fit in a 1 pixel tall atlas
    assert atlas_size(8, 1, sizes) == (12, 3)


def test_atlas_grows_for_single_column_source():
    sizes = list(mip_level_sizes(1, 1))
    assert atlas_size(1, 1, sizes) == (2, 1)


def test_offsets_stack_heights():
    sizes = [(8, 5), (4, 2), (2, 1), (1, 1)]
    assert level_offsets(16, sizes) == [(16, 0), (16, 5), (16, 7), (16, 8)]


def test_rejects_empty_source():
    with pytest.raises(ValueError):
        list(mip_level_sizes(0, 4))
