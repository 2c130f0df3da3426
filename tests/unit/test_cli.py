"""
Unit tests for the CLI module.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from layershift.cli import main, parse_args
from layershift.workflow import console as workflow_console


class TestCLI:
    """Test the CLI module."""

    def test_parse_args_minimal(self):
        """Test parse_args with minimal arguments."""
        with patch('sys.argv', ['layershift', 'BAA']):
            args = parse_args()

            assert args.subject == 'BAA'

            assert args.project_root == Path('.')
            assert args.codon_table == 'data/input/codon_table'
            assert args.metadata == 'data/example/subject_summary_table_test.csv'
            assert args.jobs_dir == 'jobs'
            assert args.output_dir == Path('figures')
            assert args.shallow_layer == '14'
            assert args.deep_layer == '28'
            assert args.codon_offset == 10
            assert args.top_k == 10
            assert args.workers == 1
            assert not args.save_series
            assert args.cache_dir == Path('./cache')
            assert args.cache_max_age == 24
            assert not args.no_cache
            assert args.log_level == 'INFO'

    def test_parse_args_full(self):
        """Test parse_args with all arguments."""
        with patch('sys.argv', [
            'layershift',
            'BRCA1',
            '--project-root', '/data/project',
            '--codon-table', 'tables/codons.tsv',
            '--metadata', 'tables/subjects.csv',
            '--jobs-dir', 'embedding_jobs',
            '--output-dir', 'results',
            '--shallow-layer', '6',
            '--deep-layer', '12',
            '--codon-offset', '4',
            '--top-k', '25',
            '--workers', '4',
            '--save-series',
            '--cache-dir', 'custom_cache',
            '--cache-max-age', '12',
            '--no-cache',
            '--log-level', 'DEBUG'
        ]):
            args = parse_args()

            assert args.subject == 'BRCA1'
            assert args.project_root == Path('/data/project')
            assert args.codon_table == 'tables/codons.tsv'
            assert args.metadata == 'tables/subjects.csv'
            assert args.jobs_dir == 'embedding_jobs'
            assert args.output_dir == Path('results')
            assert args.shallow_layer == '6'
            assert args.deep_layer == '12'
            assert args.codon_offset == 4
            assert args.top_k == 25
            assert args.workers == 4
            assert args.save_series
            assert args.cache_dir == Path('custom_cache')
            assert args.cache_max_age == 12
            assert args.no_cache
            assert args.log_level == 'DEBUG'

    def test_parse_args_requires_subject(self):
        with patch('sys.argv', ['layershift']):
            with pytest.raises(SystemExit):
                parse_args()

    def test_parse_args_from_list(self):
        args = parse_args(['BAA', '--top-k', '3'])

        assert args.subject == 'BAA'
        assert args.top_k == 3

    def test_main_runs_workflow(self):
        with patch('layershift.cli.run_analysis_workflow') as mock_workflow, \
                patch('layershift.cli.configure_logging') as mock_logging:
            assert main(['BAA', '--log-level', 'WARNING']) == 0

        mock_logging.assert_called_once_with('WARNING', console=workflow_console)
        args = mock_workflow.call_args[0][0]
        assert args.subject == 'BAA'

    def test_parse_args_rejects_negative_top_k(self):
        with pytest.raises(SystemExit) as excinfo:
            parse_args(['BAA', '--top-k', '-1'])

        assert excinfo.value.code == 2

    def test_parse_args_accepts_zero_top_k(self):
        assert parse_args(['BAA', '--top-k', '0']).top_k == 0

    def test_main_rejects_negative_top_k_before_workflow(self):
        with patch('layershift.cli.run_analysis_workflow') as mock_workflow, \
                patch('layershift.cli.configure_logging'):
            with pytest.raises(SystemExit):
                main(['BAA', '--top-k', '-5'])

        mock_workflow.assert_not_called()

    def test_logging_shares_progress_console(self):
        """Log records and the progress bar are written through one console."""
        with patch('layershift.cli.run_analysis_workflow'), \
                patch('layershift.cli.logging.basicConfig') as mock_basic_config:
            main(['BAA'])

        handler = mock_basic_config.call_args[1]['handlers'][0]
        assert handler.console is workflow_console
