import pytest

from storeassets.errors import InvalidTransition
from storeassets.jobs import JobBoard, prepare_urls
from storeassets.models.job import JobStatus


def test_prepare_urls():
    assert prepare_urls([" example.com ", "", "  ", "http://a.example", "HTTPS://B.example"]) == [
        "https://example.com",
        "http://a.example",
        "HTTPS://B.example",
    ]


@pytest.mark.asyncio
async def test_board_publishes_snapshots():
    board = JobBoard(["a.example", "b.example"])
    updates = board.subscribe()
    first, second = board.jobs

    before = board.jobs
    board.update(first.id, JobStatus.FETCHING_PAGE, status_message="Fetching page...")

    # Earlier snapshots are never modified
    assert before[0].status == JobStatus.PENDING
    assert board.jobs[0].status == JobStatus.FETCHING_PAGE
    assert board.jobs[1] is second

    published = await updates.get()
    assert published.id == first.id
    assert published.status_message == "Fetching page..."


@pytest.mark.asyncio
async def test_board_close_releases_subscribers():
    board = JobBoard(["a.example"])
    updates = board.subscribe()
    board.close()

    assert await updates.get() is None
    assert await board.wait() == board.jobs


@pytest.mark.asyncio
async def test_board_rejects_backwards_update():
    board = JobBoard(["a.example"])
    job_id = board.jobs[0].id
    board.update(job_id, JobStatus.PROCESSING_ASSETS)
    with pytest.raises(InvalidTransition):
        board.update(job_id, JobStatus.FETCHING_PAGE)
    assert board.jobs[0].status == JobStatus.PROCESSING_ASSETS


@pytest.mark.asyncio
async def test_board_unknown_job():
    board = JobBoard([])
    assert len(board) == 0
    with pytest.raises(KeyError):
        board.get("missing")
