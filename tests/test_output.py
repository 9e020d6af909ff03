"""Tests for per-context capture of printed output."""

import asyncio

import pytest

from formwork.lib.output import capture_output


def test_captured_text_stays_out_of_the_stream(capsys):
    with capture_output() as output:
        print("inside")
    print("outside")

    assert output.getvalue() == "inside\n"
    assert capsys.readouterr().out == "outside\n"


@pytest.mark.asyncio
async def test_tasks_capture_independently():
    async def run(label, delay):
        with capture_output() as output:
            await asyncio.sleep(delay)
            print(label)
            await asyncio.sleep(delay)
        return output.getvalue()

    assert await asyncio.gather(run("a", 0.02), run("b", 0.01)) == ["a\n", "b\n"]
