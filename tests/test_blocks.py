import pytest

from gloxide.voxel.blocks import (
    AIR_BLOCK_ID,
    GLASS_BLOCK_ID,
    GRASS_BLOCK_ID,
    SLAB_BLOCK_ID,
    STONE_BLOCK_ID,
    WATER_BLOCK_ID,
    BlockShape,
    RenderLayer,
    block_material_layer,
    block_traits,
    is_full_cube,
)


@pytest.mark.parametrize(
    ("block_id", "layer"),
    [
        (AIR_BLOCK_ID, 0.0),
        (STONE_BLOCK_ID, 1.0),
        (SLAB_BLOCK_ID, 2.0),
        (GRASS_BLOCK_ID, 3.0),
        (WATER_BLOCK_ID, 4.0),
        (GLASS_BLOCK_ID, 5.0),
    ],
)
def test_material_layers(block_id, layer):
    assert block_material_layer(block_id) == layer


def test_unknown_block_uses_stone_material_layer():
    assert block_material_layer(999) == block_material_layer(STONE_BLOCK_ID)


def test_material_layers_are_distinct_for_known_blocks():
    ids = [AIR_BLOCK_ID, STONE_BLOCK_ID, GLASS_BLOCK_ID, WATER_BLOCK_ID, SLAB_BLOCK_ID, GRASS_BLOCK_ID]
    assert len({block_material_layer(block_id) for block_id in ids}) == len(ids)


def test_is_full_cube():
    assert is_full_cube(BlockShape.FULL_CUBE)
    assert not is_full_cube(BlockShape.SLAB)
    assert not is_full_cube(BlockShape.CROSS)
    assert not is_full_cube(BlockShape.LIQUID)


def test_air_is_the_only_empty_known_block():
    assert block_traits(AIR_BLOCK_ID).empty
    for block_id in (STONE_BLOCK_ID, GLASS_BLOCK_ID, WATER_BLOCK_ID, SLAB_BLOCK_ID, GRASS_BLOCK_ID):
        assert not block_traits(block_id).empty


def test_water_traits():
    traits = block_traits(WATER_BLOCK_ID)
    assert traits.render_layer is RenderLayer.TRANSLUCENT
    assert traits.shape is BlockShape.LIQUID
    assert not traits.collision_solid


def test_glass_and_grass_traits():
    glass = block_traits(GLASS_BLOCK_ID)
    assert glass.render_layer is RenderLayer.TRANSLUCENT
    assert glass.shape is BlockShape.FULL_CUBE
    assert glass.collision_solid

    grass = block_traits(GRASS_BLOCK_ID)
    assert grass.render_layer is RenderLayer.CUTOUT
    assert grass.shape is BlockShape.CROSS
    assert not grass.collision_solid


def test_slab_traits():
    slab = block_traits(SLAB_BLOCK_ID)
    assert slab.shape is BlockShape.SLAB
    assert slab.render_layer is RenderLayer.OPAQUE
    assert slab.collision_solid


def test_unknown_block_behaves_like_stone():
    assert block_traits(4242) == block_traits(STONE_BLOCK_ID)
    stone = block_traits(STONE_BLOCK_ID)
    assert stone.collision_solid
    assert stone.render_layer is RenderLayer.OPAQUE