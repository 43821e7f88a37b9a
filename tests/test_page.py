import threading

from redbase.page import INVALID_PAGE_ID, PAGE_SIZE, Page, PageId


def test_page_id_default_is_invalid():
    assert PageId(3).page_no == INVALID_PAGE_ID
    assert PageId(3, 5) == PageId(fd=3, page_no=5)
    assert {PageId(1, 2): "x"}[PageId(1, 2)] == "x"


def test_new_page_is_zeroed_and_clean():
    page = Page()
    assert page.data == bytearray(PAGE_SIZE)
    assert page.pin_count == 0
    assert page.is_dirty is False


def test_reset_zeroes_data_and_keeps_size():
    page = Page()
    page.data[0:5] = b"Hello"
    page.data[-1] = 0xFF
    page.reset()
    assert len(page.data) == PAGE_SIZE
    assert not any(page.data)


def test_page_lsn_round_trip():
    page = Page()
    assert page.page_lsn == 0
    page.page_lsn = 12345
    assert page.page_lsn == 12345
    page.page_lsn = -1
    assert page.page_lsn == -1
    assert page.data[Page.OFFSET_PAGE_HDR:] == bytearray(PAGE_SIZE - Page.OFFSET_PAGE_HDR)


def test_readers_share_latch():
    page = Page()
    page.data[0:3] = b"abc"
    seen = []

    def reader():
        with page.read_latch():
            seen.append(bytes(page.data[0:3]))

    with page.read_latch():
        t = threading.Thread(target=reader)
        t.start()
        t.join(2.0)
        assert seen == [b"abc"]
    t.join()
    assert bytes(page.data[0:3]) == b"abc"


def test_writer_waits_for_reader():
    page = Page()

    def writer():
        with page.write_latch():
            page.data[0] = 7

    with page.read_latch():
        t = threading.Thread(target=writer)
        t.start()
        t.join(0.1)
        assert page.data[0] == 0
    t.join(2.0)
    assert page.data[0] == 7


def test_reader_waits_for_writer():
    page = Page()
    seen = []

    def reader():
        with page.read_latch():
            seen.append(page.data[0])

    with page.write_latch():
        t = threading.Thread(target=reader)
        t.start()
        t.join(0.1)
        assert seen == []
        page.data[0] = 9
    t.join(2.0)
    assert seen == [9]
    assert page.data[0] == 9