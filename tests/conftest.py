import io

import pytest

from logmerge.utils.runlog import RunLogger


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def logger(log_stream):
    return RunLogger(stream=log_stream)


def write_fragments(directory, base, indices, lines_per_fragment, ext_first=False):
    """
    Write fragments whose lines are numbered globally in the given order.

    Args:
        directory: Target directory.
        base: Group base name.
        indices: Order indices, in the order their content should appear.
        lines_per_fragment: Lines written to each fragment.
        ext_first: Name files <base>.log.<i> instead of <base>.<i>.log.

    Returns:
        list[str]: Every line written, in order, without newlines.
    """
    expected = []
    k = 0
    for index in indices:
        name = f"{base}.log.{index}" if ext_first else f"{base}.{index}.log"
        lines = [f"[Line {k + n}]" for n in range(lines_per_fragment)]
        k += lines_per_fragment
        (directory / name).write_text("".join(line + "\n" for line in lines))
        expected.extend(lines)
    return expected


@pytest.fixture
def make_fragments():
    return write_fragments
