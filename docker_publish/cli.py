#!/usr/bin/env python3

import argparse
import json
import sys
import os
import logging
from typing import Optional

import yaml

from docker_publish.config import RuntimeSettings
from docker_publish.daemon import DaemonSupervisor
from docker_publish.normalizer import normalize
from docker_publish.params import ParamsParser, PluginPayload
from docker_publish.pipeline import PublishPipeline
from docker_publish.runner import CommandRunner
from docker_publish.utils import resolve_binary


def load_runtime_settings(args, payload: Optional[PluginPayload] = None) -> RuntimeSettings:
    """Collect pipeline-provided settings: defaults, then env, then payload, then flags"""
    settings = RuntimeSettings()

    env_mapping = {
        'DRONE_WORKSPACE': 'workspace',
        'DRONE_COMMIT': 'commit',
        'DOCKER_BINARY': 'docker_binary',
        'DOCKERD_BINARY': 'dockerd_binary',
    }
    for env_var, attr in env_mapping.items():
        if os.environ.get(env_var):
            setattr(settings, attr, os.environ[env_var])

    # Only the literal "true" turns on daemon output
    settings.launch_debug = os.environ.get('DOCKER_LAUNCH_DEBUG') == 'true'

    if payload is not None:
        if payload.workspace:
            settings.workspace = payload.workspace
        if payload.commit:
            settings.commit = payload.commit

    if getattr(args, 'workspace', None):
        settings.workspace = args.workspace
    if getattr(args, 'commit', None):
        settings.commit = args.commit
    settings.dry_run = bool(getattr(args, 'dry_run', False))

    if not settings.workspace:
        settings.workspace = os.getcwd()
    settings.workspace = os.path.abspath(settings.workspace)
    return settings


def _load_payload(args) -> PluginPayload:
    return ParamsParser().parse_file(args.params or '-')


def cmd_publish(args):
    """Publish command handler"""
    payload = _load_payload(args)
    settings = load_runtime_settings(args, payload)
    config = normalize(payload.params, settings.workspace, settings.commit)

    print(f"🚀 Publishing {config.repository or '<no repository>'} to {config.registry}")
    print(f"   Workspace: {config.workspace}")
    print(f"   Tags: {', '.join(config.tags)}")

    docker = resolve_binary(settings.docker_binary)
    runner = CommandRunner(settings.workspace, dry_run=settings.dry_run)

    if settings.dry_run:
        print("   Dry run: commands are printed, not executed")
    else:
        supervisor = DaemonSupervisor(
            runner,
            docker_binary=docker,
            dockerd_binary=resolve_binary(settings.dockerd_binary),
            storage_driver=config.storage_driver,
            debug=settings.launch_debug,
            attempts=settings.ready_attempts,
            interval=settings.ready_interval,
        )
        supervisor.launch()
        supervisor.wait_until_ready()

    result = PublishPipeline(config, runner, docker).run()

    if result.success:
        print(f"\n🎉 Published {config.repository} ({', '.join(result.completed)})")
    else:
        print(f"\n💥 Stage '{result.failed_stage}' failed: {result.message}")
    return result.exit_code


def cmd_config(args):
    """Config command handler - show the normalized parameters"""
    payload = _load_payload(args)
    settings = load_runtime_settings(args, payload)
    config = normalize(payload.params, settings.workspace, settings.commit)
    print(json.dumps(config.redacted(), indent=2))
    return 0


def cmd_init(args):
    """Initialize command handler - create example parameters"""
    example_params = {
        "workspace": {"path": "/drone/src"},
        "build": {"commit": "0123456789abcdef"},
        "vargs": {
            "registry": "gcr.io",
            "token": "<service account JSON key>",
            "repo": "my-project/my-app",
            "tag": ["latest", "1.0.0"],
            "file": "Dockerfile",
            "context": ".",
            "load": "docker/image.tar",
            "save": {
                "destination": "docker/image.tar",
                "tag": ["latest"],
            },
        },
    }

    params_file = args.output or "publish-params.json"

    try:
        with open(params_file, 'w', encoding='utf-8') as f:
            if params_file.lower().endswith(('.yml', '.yaml')):
                yaml.safe_dump(example_params, f, sort_keys=False)
            else:
                json.dump(example_params, f, indent=2)
        print(f"Example parameters created: {params_file}")
        return 0
    except OSError as e:
        print(f"Error creating parameters file: {e}")
        return 1


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Build a Docker image and publish it to a registry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s publish -c params.json
  echo '{"vargs": {...}}' | %(prog)s publish
  %(prog)s config -c params.yaml
  %(prog)s init --output params.yaml
        """
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    def add_source_args(sub):
        sub.add_argument(
            '-c', '--params',
            help='Path to parameters file (JSON/YAML); reads stdin when omitted'
        )
        sub.add_argument('--workspace', help='Workspace root (default: $DRONE_WORKSPACE or cwd)')
        sub.add_argument('--commit', help='Commit reference used as the build tag (default: $DRONE_COMMIT)')

    # Publish command
    publish_parser = subparsers.add_parser('publish', help='Build, tag and push the image')
    add_source_args(publish_parser)
    publish_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Print docker commands without running them'
    )
    publish_parser.set_defaults(func=cmd_publish)

    # Config command
    config_parser = subparsers.add_parser('config', help='Show normalized parameters')
    add_source_args(config_parser)
    config_parser.set_defaults(func=cmd_config)

    # Init command
    init_parser = subparsers.add_parser('init', help='Create example parameters')
    init_parser.add_argument(
        '--output', '-o',
        help='Output file path (default: publish-params.json)'
    )
    init_parser.set_defaults(func=cmd_init)

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
