import asyncio
import json
import socket

import pytest

from glass_scout import GlassScout, STREAM_NAMES, __version__
from glass_scout.__main__ import CommandHandler, arun

from conftest import encode


@pytest.mark.asyncio
async def test_version(capsys):
    rc = await arun(["version"])

    assert rc == 0
    assert capsys.readouterr().out.strip() == __version__


@pytest.mark.asyncio
async def test_command_required(capsys):
    rc = await arun([])

    assert rc == 1
    assert "A command is required" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_bad_config_file_reports_error(tmp_path, capsys):
    rc = await arun(["--config", str(tmp_path / "missing.json"), "version"])

    assert rc == 1
    assert "glass-scout: error:" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_send_reaches_scout(capsys):
    received = asyncio.Event()
    packets = []

    async with GlassScout(port=0, bind_address="127.0.0.1") as scout:
        scout.subscribe("127.0.0.1", lambda packet: (packets.append(packet), received.set()))
        port = scout.local_address[1]

        rc = await arun(["--port", str(port), "send", "--target", "127.0.0.1", "--heading", "90.5", "--light-level", "3"])

        assert rc == 0
        await asyncio.wait_for(received.wait(), timeout=5.0)

    summary = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert summary == {"target": f"127.0.0.1:{port}", "sent": 1, "throttled": 0}
    assert packets[0].heading == 90.5
    assert packets[0].light_level == 3
    assert packets[0].linear_acceleration == (0.34, 0.32, 0.02)
    assert packets[0].glass_id == "glass-scout"


async def wait_until(condition, timeout=5.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        assert asyncio.get_running_loop().time() < deadline, "timed out"
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_listen_prints_stream_values(capsys):
    handler = CommandHandler(["--port", "0", "listen", "--bind", "127.0.0.1"])
    task = asyncio.create_task(handler.arun())

    await wait_until(lambda: handler.scout is not None and handler.scout.is_running)
    scout = handler.scout
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as client:
        client.sendto(encode({"Heading": 110.7, "Pitch": -1.58, "LightLevel": 46, "LinearAcceleration": [0.34, 0.32, 0.02]}), scout.local_address)
    await wait_until(lambda: scout.packets_accepted == 1)
    scout.set_final_result()

    rc = await asyncio.wait_for(task, timeout=5.0)

    assert rc == 0
    lines = [json.loads(line) for line in capsys.readouterr().out.strip().splitlines()]
    assert [line["stream"] for line in lines] == list(STREAM_NAMES)
    assert all(line["device"] == "glass 127.0.0.1" for line in lines)
    assert all(line["address"] == "127.0.0.1" for line in lines)
    assert {line["stream"]: line["value"] for line in lines} == {
        "heading": 110.7,
        "accelX": 0.34,
        "accelY": 0.32,
        "accelZ": 0.02,
        "pitch": -1.58,
        "light-level": 46,
    }
