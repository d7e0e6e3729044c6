import pytest

from meshsync.views import (
    DataType,
    MultiBufView,
    MultiBufView2,
    estimated_max_buf_sz,
    val_buf,
    val_buf2,
)


def test_scalar_sizes_follow_c_layout():
    assert len(DataType.INTEGER.pack(0)) == 4
    assert len(DataType.REAL.pack(0.0)) == 8


def test_vector_types_are_made_of_reals():
    real_size = len(DataType.REAL.pack(0.0))
    assert len(DataType.REAL3.pack((0.0,) * 3)) == 3 * real_size
    assert len(DataType.REAL3X3.pack((0.0,) * 9)) == 9 * real_size
    real_slack = estimated_max_buf_sz([0], DataType.REAL)
    assert estimated_max_buf_sz([0], DataType.REAL3) == real_slack
    assert estimated_max_buf_sz([0], DataType.REAL3X3) == real_slack


@pytest.mark.parametrize(
    "data_type,value",
    [
        (DataType.INTEGER, -17),
        (DataType.REAL, 2.75),
        (DataType.REAL3, (1.0, -2.5, 3.25)),
        (DataType.REAL3X3, tuple(float(v) for v in range(9))),
    ],
)
def test_pack_unpack_round_trip(data_type, value):
    raw = data_type.pack(value)
    assert len(raw) == data_type.size
    assert data_type.unpack(raw) == value


def test_pack_rejects_wrong_arity():
    with pytest.raises(ValueError):
        DataType.REAL3.pack((1.0, 2.0))


def test_unpack_rejects_wrong_length():
    with pytest.raises(ValueError):
        DataType.REAL.unpack(b"\x00" * 3)


def test_estimate_empty_is_zero():
    assert estimated_max_buf_sz([], DataType.REAL3, 4) == 0


def test_estimate_zero_items_leaves_alignment_room():
    assert estimated_max_buf_sz([0], DataType.REAL) == DataType.REAL.align - 1


def test_estimate_is_additive_over_neighbours():
    both = estimated_max_buf_sz([3, 7], DataType.REAL3, 2)
    separate = estimated_max_buf_sz([3], DataType.REAL3, 2) + estimated_max_buf_sz(
        [7], DataType.REAL3, 2
    )
    assert both == separate


def test_estimate_covers_the_data():
    assert estimated_max_buf_sz([5], DataType.REAL3, 2) >= 5 * 2 * DataType.REAL3.size


def test_val_buf_round_trip_through_bytes():
    buf = bytearray(3 * DataType.REAL.size)
    view = val_buf(buf, DataType.REAL)
    assert len(view) == 3
    view[0] = 1.5
    view[2] = -4.0
    assert list(view) == [1.5, 0.0, -4.0]
    assert list(val_buf(bytes(buf), DataType.REAL)) == [1.5, 0.0, -4.0]


def test_val_buf_rejects_partial_value():
    with pytest.raises(ValueError):
        val_buf(bytearray(DataType.REAL.size + 1), DataType.REAL)


def test_val_buf_index_out_of_range():
    view = val_buf(bytearray(2 * DataType.INTEGER.size), DataType.INTEGER)
    view[1] = 3
    assert len(view) == 2
    assert list(view) == [0, 3]
    with pytest.raises(IndexError):
        view[2]


def test_val_buf2_rows():
    buf = bytearray(2 * 3 * DataType.INTEGER.size)
    view = val_buf2(buf, DataType.INTEGER, 3)
    assert view.shape == (2, 3)
    view[1] = [7, 8, 9]
    view[0][2] = 5
    assert [list(row) for row in view] == [[0, 0, 5], [7, 8, 9]]


def test_val_buf2_rejects_bad_row_size():
    with pytest.raises(ValueError):
        val_buf2(bytearray(5 * DataType.INTEGER.size), DataType.INTEGER, 2)
    with pytest.raises(ValueError):
        val_buf2(bytearray(4), DataType.INTEGER, 0)


def test_multi_buf_view_sub_buffers_share_memory():
    buf = bytearray(16)
    mb = MultiBufView(buf, [0, 8], [4, 8])
    assert len(mb) == 2
    assert len(mb.byte_buf(1)) == 8
    mb.byte_buf(1)[0] = 42
    assert buf[8] == 42


def test_multi_buf_view_range_includes_gaps():
    buf = bytearray(range(20))
    mb = MultiBufView(buf, [2, 10], [3, 5])
    span = mb.range_span()
    assert bytes(span) == bytes(buf[2:15])
    assert bytes(mb.range_view()) == bytes(span)
    assert mb.range_bounds == (2, 15)


def test_empty_multi_buf_view():
    mb = MultiBufView()
    assert len(mb) == 0
    assert len(mb.range_span()) == 0
    assert mb.range_bounds is None


def test_multi_buf_view_rejects_mismatched_lists():
    with pytest.raises(ValueError):
        MultiBufView(bytearray(8), [0, 4], [4])


def test_multi_buf_view_rejects_out_of_buffer_range():
    with pytest.raises(ValueError):
        MultiBufView(bytearray(8), [4], [8])


def test_multi_buf_view2_selects_first_dimension():
    buf = bytearray(range(24))
    mb2 = MultiBufView2(buf, [0, 4, 8, 16], [4, 4, 8, 8], 2, 2)
    second = mb2.multi_view(1)
    assert second.offsets == (8, 16)
    assert bytes(second.byte_buf(0)) == bytes(buf[8:16])
    assert bytes(mb2.range_span()) == bytes(buf)


def test_multi_buf_view2_index_out_of_range():
    mb2 = MultiBufView2(bytearray(8), [0, 4], [4, 4], 1, 2)
    with pytest.raises(IndexError):
        mb2.multi_view(1)
    with pytest.raises(IndexError):
        mb2.multi_view(-1)


def test_multi_buf_view2_rejects_wrong_dimensions():
    with pytest.raises(ValueError):
        MultiBufView2(bytearray(8), [0, 4], [4, 4], 2, 2)