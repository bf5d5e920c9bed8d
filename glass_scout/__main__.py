#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import sys
import argparse
import json
import time
import asyncio
import logging
from signal import SIGINT, SIGTERM

from glass_scout.internal_types import *

from glass_scout import (
    __version__ as pkg_version,
    GlassScout,
    GlassTelemetrySender,
    TelemetryPacket,
    DeviceHub,
    ScoutConfig,
    BROADCAST_ADDRESS,
    DEFAULT_BIND_ADDRESS,
  )
from glass_scout.util import get_local_ip_addresses

class CmdExitError(RuntimeError):
    exit_code: int

    def __init__(self, exit_code: int, msg: Optional[str]=None):
        if msg is None:
            msg = f"Command exited with return code {exit_code}"
        super().__init__(msg)
        self.exit_code = exit_code

class ArgparseExitError(CmdExitError):
    pass

class NoExitArgumentParser(argparse.ArgumentParser):
    def exit(self, status=0, message=None):
        if message:
            self._print_message(message, sys.stderr)
        raise ArgparseExitError(status, message)

class CommandHandler:
    _argv: Optional[Sequence[str]]
    _parser: argparse.ArgumentParser
    _args: argparse.Namespace
    _config: ScoutConfig
    _provide_traceback: bool = True

    scout: Optional[GlassScout] = None
    """The scout started by the listen command, once it is running"""

    def __init__(self, argv: Optional[Sequence[str]]=None):
        self._argv = argv

    async def cmd_bare(self) -> int:
        print("A command is required", file=sys.stderr)
        return 1

    async def cmd_listen(self) -> int:
        cfg = self._config
        scout = GlassScout(port=cfg.port, bind_address=cfg.bind_address)

        def on_stream_value(device_name: str, address: str, stream_name: str, value: StreamValue) -> None:
            summary: JsonableDict = {
                "device": device_name,
                "address": address,
                "stream": stream_name,
                "value": value,
            }
            print(json.dumps(summary, sort_keys=True))
            sys.stdout.flush()

        hub = DeviceHub(stream_callback=on_stream_value)
        scout.add_discover_handler(hub.on_discover)

        loop = asyncio.get_running_loop()
        installed_signals: List[int] = []
        try:
            async with scout as s:
                self.scout = s
                for signal in (SIGINT, SIGTERM):
                    try:
                        loop.add_signal_handler(signal, s.set_final_result)
                        installed_signals.append(signal)
                    except NotImplementedError:
                        pass
                if cfg.bind_address == DEFAULT_BIND_ADDRESS:
                    logging.info(f"Listening on port {cfg.port} of local addresses {', '.join(get_local_ip_addresses())}")
                await s.wait_for_done()
        finally:
            for signal in installed_signals:
                loop.remove_signal_handler(signal)
            hub.close()
        logging.info(f"Scout stopped: {scout.packets_accepted} packets accepted, {scout.packets_dropped} dropped")
        return 0

    def _packet_from_args(self) -> TelemetryPacket:
        args = self._args
        return TelemetryPacket(
            heading=args.heading,
            pitch=args.pitch,
            light_level=args.light_level,
            linear_acceleration=tuple(args.accel),
            glass_id=args.glass_id,
            time=int(time.time() * 1000),
          )

    async def cmd_send(self) -> int:
        cfg = self._config
        count: int = self._args.count
        interval: float = self._args.interval
        target: HostAndPort = (self._args.target, cfg.port)
        async with GlassTelemetrySender(target=target, min_interval=cfg.send_interval) as sender:
            for i in range(count):
                if i > 0:
                    await asyncio.sleep(interval)
                sender.send(self._packet_from_args())
            summary: JsonableDict = {
                "target": f"{target[0]}:{target[1]}",
                "sent": sender.packets_sent,
                "throttled": sender.packets_throttled,
            }
        print(json.dumps(summary, sort_keys=True))
        return 0

    async def cmd_version(self) -> int:
        print(pkg_version)
        return 0

    async def arun(self) -> int:
        """Run the glass-scout command-line tool with provided arguments

        Args:
            argv (Optional[Sequence[str]], optional):
                A list of commandline arguments (NOT including the program as argv[0]!),
                or None to use sys.argv[1:]. Defaults to None.

        Returns:
            int: The exit code that would be returned if this were run as a standalone command.
        """
        parser = NoExitArgumentParser(prog="glass-scout", description="Discover glass devices and stream their telemetry.")


        # ======================= Main command

        self._parser = parser
        parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                            help='Display detailed exception information')
        parser.add_argument('--log-level', dest='log_level', default=None,
                            choices=['debug', 'info', 'warning', 'error', 'critical'],
                            help='''The logging level to use. Default: warning''')
        parser.add_argument('-c', '--config', dest='config_file', default=None,
                            help='''A JSON configuration file. Default: none''')
        parser.add_argument('-p', '--port', type=int, default=None,
                            help='''The UDP port to listen on or send to. Default: 2323''')
        parser.set_defaults(func=self.cmd_bare)

        subparsers = parser.add_subparsers(
                            title='Commands',
                            description='Valid commands',
                            help='Additional help available with "<command-name> -h"')


        # ======================= listen

        parser_listen = subparsers.add_parser('listen', description="Listen for glass devices and print their stream values")
        parser_listen.add_argument('-b', '--bind', dest="bind_address", default=None,
                            help=f'''The local IP address to bind to. Default: {DEFAULT_BIND_ADDRESS} (all interfaces)''')
        parser_listen.set_defaults(func=self.cmd_listen)

        # ======================= send

        parser_send = subparsers.add_parser('send', description="Send simulated glass telemetry")
        parser_send.add_argument('-t', '--target', default=BROADCAST_ADDRESS,
                            help=f'''The address to send to. Default: {BROADCAST_ADDRESS}''')
        parser_send.add_argument('-n', '--count', type=int, default=1,
                            help='The number of packets to send. Default: 1')
        parser_send.add_argument('--interval', type=float, default=0.25,
                            help='Seconds to wait between packets. Default: 0.25')
        parser_send.add_argument('--heading', type=float, default=110.7,
                            help='Heading in degrees. Default: 110.7')
        parser_send.add_argument('--pitch', type=float, default=-1.58,
                            help='Pitch in degrees. Default: -1.58')
        parser_send.add_argument('--light-level', dest='light_level', type=int, default=46,
                            help='Light level. Default: 46')
        parser_send.add_argument('--accel', type=float, nargs=3, default=[0.34, 0.32, 0.02], metavar=('X', 'Y', 'Z'),
                            help='Linear acceleration. Default: 0.34 0.32 0.02')
        parser_send.add_argument('--glass-id', dest='glass_id', default='glass-scout',
                            help='The GlassId to report. Default: glass-scout')
        parser_send.set_defaults(func=self.cmd_send)

        # ======================= version

        parser_version = subparsers.add_parser('version',
                                description='''Display version information.''')
        parser_version.set_defaults(func=self.cmd_version)

        # =========================================================

        try:
            args = parser.parse_args(self._argv)
        except ArgparseExitError as ex:
            return ex.exit_code
        traceback: bool = args.traceback
        self._provide_traceback = traceback

        try:
            self._config = ScoutConfig.load(
                config_file=args.config_file,
                overrides=dict(
                    log_level=args.log_level,
                    port=args.port,
                    bind_address=getattr(args, 'bind_address', None),
                  ),
              )
            logging.basicConfig(
                level=logging.getLevelName(self._config.log_level.upper()),
            )
            self._args = args
            func: Callable[[], Awaitable[int]] = args.func
            logging.debug(f"Running command {func.__name__}, tb = {traceback}, config = {self._config}")
            rc = await func()
            logging.debug(f"Command {func.__name__} returned {rc}")
        except Exception as ex:
            if isinstance(ex, CmdExitError):
                rc = ex.exit_code
            else:
                rc = 1
            if rc != 0:
                if traceback:
                    raise
                print(f"glass-scout: error: {ex}", file=sys.stderr)
        except BaseException as ex:
            print(f"glass-scout: Unhandled exception: {ex}", file=sys.stderr)
            raise

        return rc

    def run(self) -> int:
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            rc = loop.run_until_complete(self.arun())
        finally:
            loop.close()
        return rc

def run(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = CommandHandler(argv).run()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

async def arun(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = await CommandHandler(argv).arun()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
    sys.exit(run())
