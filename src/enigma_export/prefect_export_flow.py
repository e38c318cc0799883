"""
Prefect Orchestration for the Enigma export client
Wraps the export request lifecycle in Prefect tasks and a flow with a CLI

enigma-export --config configs/enigma_export.toml --dataset edu.umd.start.gtd --select country_txt --select nkill --run
"""

import os
import sys
import logging
import argparse
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

# Prefect imports
from prefect import flow, task, get_run_logger

from .config_loader import ConfigLoader, ConfigurationError, EnvironmentError, ExportConfig
from .export_handle import ExportHandle
from .export_orchestrator import ExportOrchestrator
from .export_requester import ExportJobDescriptor
from .parameter_encoder import ExportRequest, ParameterEncoder, ValidationError
from .response_interpreter import RemoteError

# ===================================================================
# PREFECT TASKS
# ===================================================================

@task(
    name="validate_configuration_and_environment",
    description="Validate TOML configuration and the API key environment variable",
    retries=0
)
def validate_configuration_and_environment(config_path: str) -> Dict[str, Any]:
    """
    Validate TOML configuration and environment variables

    Args:
        config_path: Path to TOML configuration file

    Returns:
        Validation results and config summary
    """
    logger = get_run_logger()
    logger.info(f"Validating configuration: {config_path}")

    config = ConfigLoader.load_toml_config(Path(config_path))
    ConfigLoader.validate_environment_variables(config)

    logger.info("Configuration and environment validation passed")
    return {
        'status': 'valid',
        'config_summary': _config_summary(config)
    }


@task(
    name="initiate_export",
    description="Ask the service to prepare a dataset export",
    retries=0
)
def initiate_export(config_path: str, request_options: Dict[str, Any]) -> Dict[str, str]:
    """
    Request an export and return its job descriptor

    Args:
        config_path: Path to configuration file
        request_options: Keyword arguments for ExportRequest

    Returns:
        Dataset identifier and the export URL to poll
    """
    logger = get_run_logger()
    config = ConfigLoader.load_toml_config(Path(config_path))
    api_key = ConfigLoader.resolve_api_key(config)

    orchestrator = ExportOrchestrator.from_config(config)
    try:
        job = orchestrator.request_job(ExportRequest(**request_options), api_key)
    finally:
        orchestrator.http_client.close_connection()

    logger.info(f"Export of {job.dataset} accepted")
    return {'dataset': job.dataset, 'export_url': job.export_url}


@task(
    name="download_export",
    description="Poll the export URL until ready and stream the artifact to disk",
    retries=0  # Polling is the only repetition allowed
)
def download_export(config_path: str, export_url: str, dataset: str,
                    path: Optional[str] = None, overwrite: Optional[bool] = None) -> ExportHandle:
    """
    Poll and download a prepared export

    Args:
        config_path: Path to configuration file
        export_url: URL returned by initiate_export
        dataset: Dataset identifier the export belongs to
        path: Destination path, derived from export_url when omitted
        overwrite: Override for the configured overwrite flag

    Returns:
        ExportHandle for the downloaded artifact
    """
    logger = get_run_logger()
    config = ConfigLoader.load_toml_config(Path(config_path))
    orchestrator = ExportOrchestrator.from_config(config)

    job = ExportJobDescriptor(export_url=export_url, dataset=dataset)
    overwrite = config.overwrite if overwrite is None else overwrite

    try:
        handle = orchestrator.download_job(job, path=path, overwrite=overwrite)
    finally:
        orchestrator.http_client.close_connection()

    logger.info(f"Downloaded {dataset} to {handle.path}")
    return handle


# ===================================================================
# PREFECT FLOWS
# ===================================================================

@flow(
    name="enigma-export-fetch",
    description="Request, poll and download a dataset export",
    version="1.0.0",
    log_prints=True
)
def export_fetch_flow(config_path: str, dataset: str,
                      select: Optional[List[str]] = None, search: Optional[str] = None,
                      where: Optional[List[str]] = None, conjunction: Optional[str] = None,
                      sort: Optional[str] = None, path: Optional[str] = None,
                      overwrite: Optional[bool] = None) -> Dict[str, Any]:
    """
    Complete export fetch workflow using Prefect orchestration

    Returns:
        Summary with pipeline_status SUCCESS and the handle, or FAILED with
        the error type, message and remote error kind
    """
    logger = get_run_logger()
    logger.info(f"Starting export fetch for dataset {dataset}")

    request_options = {
        'dataset': dataset,
        'select': select,
        'search': search,
        'where': where,
        'conjunction': conjunction,
        'sort': sort
    }

    try:
        ParameterEncoder.encode(ExportRequest(**request_options))
        validation_results = validate_configuration_and_environment(config_path)
        job = initiate_export(config_path, request_options)
        handle = download_export(config_path, job['export_url'], dataset, path, overwrite)

        logger.info("Export fetch completed successfully")
        return {
            'pipeline_status': 'SUCCESS',
            'dataset': dataset,
            'path': handle.path,
            'content_hash': handle.content_hash,
            'handle': handle,
            'config_summary': validation_results['config_summary']
        }

    except Exception as e:
        logger.error(f"Export fetch failed: {e}")
        return {
            'pipeline_status': 'FAILED',
            'dataset': dataset,
            'error_type': type(e).__name__,
            'error': str(e),
            'error_kind': e.kind.value if isinstance(e, RemoteError) else None
        }


# ===================================================================
# UTILITY FUNCTIONS
# ===================================================================

def _config_summary(config: ExportConfig) -> Dict[str, Any]:
    return {
        'api_name': config.name,
        'base_url': config.base_url,
        'max_attempts': config.max_attempts,
        'poll_interval': config.poll_interval
    }


def configure_logging(config: ExportConfig, verbose: bool = False) -> None:
    """Configure root logging with a file and console handler"""
    handlers: List[logging.Handler] = [logging.StreamHandler()]

    log_file_name = config.logging.get('log_file_name')
    if log_file_name:
        log_dir = Path(config.logging.get('directory', 'logs'))
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / log_file_name))

    level = 'DEBUG' if verbose else config.logging.get('level', 'INFO')
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )
    # urllib3 logs request paths at DEBUG, and the initiation path holds the API key
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def build_export_request(args: argparse.Namespace) -> ExportRequest:
    """Build an ExportRequest from parsed CLI arguments"""
    return ExportRequest(
        dataset=args.dataset,
        select=args.select,
        search=args.search,
        where=args.where,
        conjunction=args.conjunction,
        sort=args.sort
    )


# ===================================================================
# COMMAND LINE INTERFACE
# ===================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Enigma dataset export client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch a whole dataset to the default location
  enigma-export --config configs/enigma_export.toml --dataset edu.umd.start.gtd --run

  # Project columns and filter rows
  enigma-export --config configs/enigma_export.toml --dataset edu.umd.start.gtd \\
      --select country_txt --select nkill --where "nkill > 0" --sort=-nkill --run

  # Validate configuration only
  enigma-export --config configs/enigma_export.toml --validate-only

Descending sorts start with '-', so pass them as --sort=-column.
        """
    )

    parser.add_argument("--config", required=True, help="Path to TOML configuration file")
    parser.add_argument("--dataset", help="Dataset identifier")
    parser.add_argument("--select", action="append", help="Column to return (repeatable)")
    parser.add_argument("--search", help="Search query, '|' separates alternatives")
    parser.add_argument("--where", action="append", help="Numeric filter such as 'nkill > 0' (one only)")
    parser.add_argument("--conjunction", choices=["and", "or"], help="Combine search and where with and/or")
    parser.add_argument("--sort", help="Sort column prefixed with + or -")
    parser.add_argument("--path", help="Destination file path")
    parser.add_argument("--no-overwrite", action="store_true", help="Fail if the destination exists")
    parser.add_argument("--key", help="API key, overrides the configured environment variable")
    parser.add_argument("--run", action="store_true", help="Run the export fetch")
    parser.add_argument("--validate-only", action="store_true", help="Only validate configuration")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution function"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = ConfigLoader.load_toml_config(Path(args.config))
        configure_logging(config, verbose=args.verbose)

        if args.key:
            os.environ[config.api_key_env] = args.key

        if args.validate_only:
            ConfigLoader.validate_environment_variables(config)
            summary = _config_summary(config)
            print("Configuration validation passed!")
            print(f"API: {summary['api_name']}")
            print(f"Base URL: {summary['base_url']}")
            print(f"Polling: every {summary['poll_interval']}s, at most {summary['max_attempts']} attempts")
            return 0

        if not args.run:
            parser.print_help()
            return 1

        if not args.dataset:
            print("--dataset is required when using --run")
            return 1

        # Reject malformed options before any network call
        ParameterEncoder.encode(build_export_request(args))

        result = export_fetch_flow(
            config_path=args.config,
            dataset=args.dataset,
            select=args.select,
            search=args.search,
            where=args.where,
            conjunction=args.conjunction,
            sort=args.sort,
            path=args.path,
            overwrite=False if args.no_overwrite else None
        )

        if result.get('pipeline_status') != 'SUCCESS':
            print(f"Export failed ({result.get('error_type')}): {result.get('error')}")
            return 1

        print(result['handle'].summary())
        return 0

    except (ConfigurationError, EnvironmentError, ValidationError, FileNotFoundError) as e:
        print(f"{type(e).__name__}: {e}")
        return 1
    except Exception as e:
        print(f"\nExecution failed: {e}")
        if args.verbose:
            print(f"Traceback: {traceback.format_exc()}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
