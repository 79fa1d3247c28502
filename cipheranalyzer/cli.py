"""Command line interface for Cipher Analyzer."""

import json
import os

import click

from .dictionary import Dictionary
from .engine import Engine

try:
    import yaml  # optional dependency for YAML config files
except Exception:
    yaml = None


def _load_config(config_path):
    """Load a YAML or JSON config file into a dict (empty when no path)."""
    if not config_path:
        return {}
    _, ext = os.path.splitext(config_path.lower())
    with open(config_path, 'r', encoding='utf-8') as cf:
        if ext in ('.yaml', '.yml'):
            if yaml is None:
                raise click.BadParameter("PyYAML is required to load YAML config files; install 'pyyaml' or use JSON")
            conf = yaml.safe_load(cf) or {}
        else:
            conf = json.load(cf) or {}
    if not isinstance(conf, dict):
        raise click.BadParameter(f"config file {config_path} must contain a mapping")
    return conf


def _read_text(text, input_file):
    if input_file:
        with open(input_file, 'r', encoding='utf-8') as f:
            return f.read()
    if text is None:
        raise click.UsageError("provide TEXT or --input-file")
    return text


def _emit(output, output_file):
    payload = json.dumps(output, indent=2, ensure_ascii=False)
    if output_file:
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(payload)
        click.echo(f"Results written to {output_file}", err=True)
    else:
        click.echo(payload)


@click.group()
@click.version_option(package_name='cipher-analyzer')
def cli():
    """Cipher Analyzer - classical cipher cryptanalysis toolkit."""
    pass


@cli.command()
@click.argument('ciphertext', required=False)
@click.option('--input-file', '-i', type=click.Path(exists=True), default=None,
              help='Read ciphertext from a file instead of the argument')
@click.option('--cipher', '-C', 'cipher', type=str, default=None,
              help='Cipher family to brute-force (see list-ciphers)')
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True), default=None,
              help='Path to YAML or JSON configuration file')
@click.option('--dictionary', '-d', 'dictionary_path', type=click.Path(exists=True), default=None,
              help='Word list file, one or more words per line (default: built-in list)')
@click.option('--mode', type=click.Choice(['basic', 'advanced', 'entropy']), default=None,
              help='Scoring mode')
@click.option('--top-n', 'top_n', type=int, default=None, help='Number of candidates to report')
@click.option('--max-key-length', 'max_key_length', type=int, default=None,
              help='Longest Vigenere key to try')
@click.option('--max-columns', 'max_columns', type=int, default=None,
              help='Largest column count for transposition')
@click.option('--keyword', 'keywords', multiple=True,
              help='Candidate keyword for keyword ciphers such as playfair (repeatable)')
@click.option('--max-keys', 'max_keys', type=int, default=None,
              help='Stop after this many keys have been enumerated')
@click.option('--budget-ms', 'budget_ms', type=int, default=None,
              help='Overall time budget in milliseconds; enumeration stops when exhausted')
@click.option('--parallel/--sequential', default=None, help='Evaluate key batches on a worker pool')
@click.option('--executor', type=click.Choice(['thread', 'process']), default=None,
              help='Worker pool kind used with --parallel')
@click.option('--max-workers', 'max_workers', type=int, default=None, help='Worker pool size')
@click.option('--strict', is_flag=True, default=False,
              help='Fail on input with no letters instead of warning')
@click.option('--out', '-o', 'output_file', type=click.Path(), default=None,
              help='Write JSON report to this file instead of stdout')
@click.option('--log-level', 'log_level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=True),
              default=None, help='Set logging level for the cipheranalyzer logger')
@click.option('--log-path', 'log_path', type=click.Path(), default=None, help='Append JSONL log records to this file')
def solve(ciphertext, input_file, cipher, config_path, dictionary_path, mode, top_n, max_key_length,
          max_columns, keywords, max_keys, budget_ms, parallel, executor, max_workers, strict,
          output_file, log_level, log_path):
    """Brute-force CIPHERTEXT and print the best-scoring decryptions.

    Flags given on the command line override the same keys from --config.
    """
    try:
        text = _read_text(ciphertext, input_file)
        merged_config = _load_config(config_path)
        params = dict(merged_config.get('params') or {})

        overrides = {
            'cipher': cipher,
            'mode': mode,
            'top_n': top_n,
            'max_keys': max_keys,
            'budget_ms': budget_ms,
            'parallel': parallel,
            'executor': executor,
            'max_workers': max_workers,
            'log_level': log_level,
            'log_path': log_path,
        }
        for k, v in overrides.items():
            if v is not None:
                merged_config[k] = v
        if strict:
            merged_config['strict'] = True

        if max_key_length is not None:
            params['max_key_length'] = max_key_length
        if max_columns is not None:
            params['max_columns'] = max_columns
        if keywords:
            params['keywords'] = list(keywords)
        merged_config['params'] = params

        dictionary_path = dictionary_path or merged_config.get('dictionary')
        if dictionary_path:
            merged_config['dictionary'] = Dictionary.from_file(dictionary_path)
        if not merged_config.get('cipher'):
            raise click.UsageError("--cipher is required (or 'cipher' in --config)")

        engine = Engine()
        try:
            output = engine.solve(text, merged_config)
        finally:
            engine.close()
        _emit(output, output_file)
    except click.ClickException:
        raise
    except Exception as e:
        click.echo(f"Error during solve: {e}", err=True)
        raise click.Abort()


@cli.command()
@click.argument('text', required=False)
@click.option('--input-file', '-i', type=click.Path(exists=True), default=None,
              help='Read text from a file instead of the argument')
@click.option('--dictionary', '-d', 'dictionary_path', type=click.Path(exists=True), default=None,
              help='Word list used for the language signals (default: built-in list)')
@click.option('--max-key-length', 'max_key_length', type=int, default=20,
              help='Longest key length considered by the key-length hints')
@click.option('--out', '-o', 'output_file', type=click.Path(), default=None,
              help='Write JSON report to this file instead of stdout')
@click.option('--log-level', 'log_level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=True),
              default='WARNING', help='Set logging level for the cipheranalyzer logger')
def analyze(text, input_file, dictionary_path, max_key_length, output_file, log_level):
    """Report frequency, entropy and key-length statistics for TEXT."""
    try:
        content = _read_text(text, input_file)
        config = {'max_key_length': max_key_length, 'log_level': log_level}
        if dictionary_path:
            config['dictionary'] = dictionary_path
        output = Engine().analyze(content, config)
        _emit(output, output_file)
    except click.ClickException:
        raise
    except Exception as e:
        click.echo(f"Error during analysis: {e}", err=True)
        raise click.Abort()


def _transform(action, cipher, key, text, input_file):
    try:
        content = _read_text(text, input_file)
        engine = Engine()
        fn = engine.encrypt if action == 'encrypt' else engine.decrypt
        click.echo(fn(cipher, content, key))
    except click.ClickException:
        raise
    except Exception as e:
        click.echo(f"{action} failed: {e}", err=True)
        raise click.Abort()


@cli.command()
@click.argument('text', required=False)
@click.option('--cipher', '-C', 'cipher', type=str, required=True, help='Cipher family')
@click.option('--key', '-k', 'key', type=str, required=True,
              help="Key: shift, 'a,b', keyword or column count depending on the cipher")
@click.option('--input-file', '-i', type=click.Path(exists=True), default=None)
def encrypt(text, cipher, key, input_file):
    """Encrypt TEXT with a known key."""
    _transform('encrypt', cipher, key, text, input_file)


@cli.command()
@click.argument('text', required=False)
@click.option('--cipher', '-C', 'cipher', type=str, required=True, help='Cipher family')
@click.option('--key', '-k', 'key', type=str, required=True,
              help="Key: shift, 'a,b', keyword or column count depending on the cipher")
@click.option('--input-file', '-i', type=click.Path(exists=True), default=None)
def decrypt(text, cipher, key, input_file):
    """Decrypt TEXT with a known key."""
    _transform('decrypt', cipher, key, text, input_file)


@cli.command('list-ciphers')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Print the registry as JSON')
def list_ciphers(as_json):
    """List registered cipher plugins."""
    ciphers = Engine().describe_ciphers()
    if as_json:
        click.echo(json.dumps(ciphers, indent=2))
        return
    for c in ciphers:
        click.echo(f"{c['name']}: {c['description']}")


if __name__ == '__main__':
    cli()
