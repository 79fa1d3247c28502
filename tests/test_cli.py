import json
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]


def _run(*args, check=True):
    return subprocess.run(
        [sys.executable, "-m", "cipheranalyzer.cli", *args],
        check=check,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=str(REPO_ROOT),
    )


def test_cli_encrypt_decrypt():
    enc = _run("encrypt", "HELLO WORLD", "--cipher", "caesar", "--key", "3")
    assert enc.stdout.decode().strip() == "KHOOR ZRUOG"
    dec = _run("decrypt", "IHHWVC SWFRCP", "--cipher", "affine", "--key", "5,8")
    assert dec.stdout.decode().strip() == "AFFINE CIPHER"


def test_cli_solve_writes_json(tmp_path):
    words = tmp_path / "words.txt"
    words.write_text("hello\nworld\n", encoding="utf-8")
    output_file = tmp_path / "report.json"

    completed = _run("solve", "KHOOR ZRUOG", "--cipher", "caesar", "--dictionary", str(words),
                     "--top-n", "3", "-o", str(output_file))

    assert output_file.exists(), f"stdout: {completed.stdout.decode()}; stderr: {completed.stderr.decode()}"
    data = json.loads(output_file.read_text(encoding="utf-8"))
    assert set(data) >= {"results", "errors", "scorecard", "analysis", "meta"}
    assert len(data["results"]) == 3
    assert data["results"][0]["key"] == 3
    assert data["results"][0]["plaintext"] == "HELLO WORLD"
    assert data["scorecard"]["cipher"] == "caesar"


def test_cli_solve_reads_yaml_config(tmp_path):
    config = tmp_path / "solve.yaml"
    config.write_text("cipher: caesar\nmax_keys: 4\ntop_n: 2\n", encoding="utf-8")
    completed = _run("solve", "KHOOR ZRUOG", "--config", str(config))
    data = json.loads(completed.stdout.decode())
    assert data["scorecard"]["keys_enumerated"] == 4
    assert data["scorecard"]["truncated"] is True
    assert len(data["results"]) == 2


def test_cli_flags_override_json_config(tmp_path):
    config = tmp_path / "solve.json"
    config.write_text(json.dumps({"cipher": "affine", "top_n": 1}), encoding="utf-8")
    completed = _run("solve", "KHOOR ZRUOG", "--config", str(config), "--cipher", "caesar")
    data = json.loads(completed.stdout.decode())
    assert data["scorecard"]["cipher"] == "caesar"
    assert len(data["results"]) == 1


def test_cli_solve_requires_cipher():
    completed = _run("solve", "KHOOR ZRUOG", check=False)
    assert completed.returncode != 0
    assert b"--cipher" in completed.stderr


def test_cli_invalid_key_fails():
    completed = _run("encrypt", "HELLO", "--cipher", "affine", "--key", "13,1", check=False)
    assert completed.returncode != 0
    assert b"encrypt failed" in completed.stderr


def test_cli_analyze():
    completed = _run("analyze", "LXFOPVEFRNHR LXFOPVEFRNHR")
    data = json.loads(completed.stdout.decode())
    stats = data["analysis"]["statistics"]
    assert stats["letters"] == 24
    assert "kasiski" in data["analysis"]["key_length_hints"]


def test_cli_list_ciphers():
    completed = _run("list-ciphers", "--json")
    names = [c["name"] for c in json.loads(completed.stdout.decode())]
    assert {"caesar", "affine", "vigenere", "transposition", "playfair"} <= set(names)


def test_cli_analyze_language_signals(tmp_path):
    words = tmp_path / "words.txt"
    words.write_text("hello\nworld\n", encoding="utf-8")
    completed = _run("analyze", "HELLO THERE WORLD", "--dictionary", str(words))
    language = json.loads(completed.stdout.decode())["analysis"]["language"]
    assert language["valid_words"] == ["HELLO", "WORLD"]
