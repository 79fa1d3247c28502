"""Cipher Analyzer brute-force engine."""

import concurrent.futures
import datetime
import importlib.metadata
import itertools
import json
import logging
import os
import platform
import sys
import time
from typing import Any, Dict, Iterator, List, Optional, Tuple

from . import statistics as st
from .dictionary import Dictionary, grammar_score
from .errors import EmptyInputError, InvalidKeyError
from .keyspace import DEFAULT_VIGENERE_MAX_LENGTH, preferred_vigenere_lengths
from .language import ENGLISH, LanguageProfile
from .patterns import KasiskiResult, PatternFinder
from .plugin_api import Candidate, CipherPlugin, jsonable_key, serialize_candidate
from .ranking import DEFAULT_TOP_N, rank
from .scoring import Scorer, ScoringWeights

logger = logging.getLogger("cipheranalyzer.engine")

DEFAULT_BATCH_SIZE = 64

_EXHAUSTED = object()


def _evaluate_batch(plugin: CipherPlugin, ciphertext: str, batch: List[Tuple[int, Any]],
                    scorer: Scorer) -> Dict[str, Any]:
    """Decrypt, featurize and score one batch of (index, key) pairs.

    Never raises for a single key: InvalidKeyError keys are counted and
    skipped, anything else becomes an error entry. The returned dict only
    holds picklable values so the same function serves thread and process
    pools.
    """
    candidates: List[Candidate] = []
    errors: List[Dict[str, Any]] = []
    invalid = 0
    for index, key in batch:
        try:
            plaintext = plugin.safe_decrypt(ciphertext, key)
        except InvalidKeyError:
            invalid += 1
            continue
        if isinstance(plaintext, dict):
            errors.append({"cipher": plugin.name, "key": jsonable_key(key), "index": index,
                           "status": "error", "reason": plaintext.get("reason")})
            continue
        try:
            features, score = scorer.evaluate(plaintext)
        except Exception as e:
            errors.append({"cipher": plugin.name, "key": jsonable_key(key), "index": index,
                           "status": "error", "reason": f"scoring failed: {e}"})
            continue
        candidates.append(Candidate(plugin.name, key, plaintext, features, score, index))
    return {"candidates": candidates, "errors": errors, "invalid": invalid}


def _failed_batch(plugin: CipherPlugin, batch: List[Tuple[int, Any]], exc: BaseException) -> Dict[str, Any]:
    """Error entries for every key of a batch whose evaluation raised as a whole."""
    errors = [{"cipher": plugin.name, "key": jsonable_key(key), "index": index,
               "status": "error", "reason": f"batch failed: {exc}"}
              for index, key in batch]
    return {"candidates": [], "errors": errors, "invalid": 0}


class _BatchSource:
    """Pull (index, key) batches lazily from a keyspace, honouring a key budget."""

    def __init__(self, keyspace, batch_size: int, max_keys: Optional[int]):
        self._it: Iterator[Any] = iter(keyspace)
        self._batch_size = batch_size
        self._max_keys = max_keys
        self.enumerated = 0
        self.truncated = False

    def next_batch(self) -> List[Tuple[int, Any]]:
        size = self._batch_size
        if self._max_keys is not None:
            size = min(size, self._max_keys - self.enumerated)
            if size <= 0:
                # Budget spent; only a truncation if keys were left over.
                if next(self._it, _EXHAUSTED) is not _EXHAUSTED:
                    self.truncated = True
                return []
        keys = list(itertools.islice(self._it, size))
        batch = list(enumerate(keys, start=self.enumerated))
        self.enumerated += len(keys)
        return batch


class Engine:
    """Main solving engine for Cipher Analyzer."""

    def __init__(self):
        self._ciphers: Dict[str, CipherPlugin] = {}
        # Map of configured log_path -> handler to avoid duplicate handlers across solve calls
        self._log_handlers: Dict[str, logging.Handler] = {}
        self._discover_plugins()

    def _discover_plugins(self):
        """Register built-in ciphers, then any published via entry points."""
        from .plugins.affine import AffineCipher
        from .plugins.caesar import CaesarCipher
        from .plugins.playfair import PlayfairCipher
        from .plugins.transposition import TranspositionCipher
        from .plugins.vigenere import VigenereCipher

        for plugin in (CaesarCipher(), AffineCipher(), VigenereCipher(),
                       TranspositionCipher(), PlayfairCipher()):
            self.register_cipher(plugin.name, plugin)

        # Load plugins published via entry points (group: 'cipheranalyzer.plugins')
        for ep in importlib.metadata.entry_points(group="cipheranalyzer.plugins"):
            try:
                cls = ep.load()
            except Exception:
                logger.exception("failed to load cipher plugin entry point %s", ep.name)
                continue
            if isinstance(cls, type) and issubclass(cls, CipherPlugin):
                self.register_cipher(ep.name, cls())
            else:
                logger.warning("entry point %s is not a CipherPlugin; ignored", ep.name)

    def _configure_logging(self, config: Dict[str, Any]) -> None:
        """Configure logging based on config options.

        - Respect 'log_level' (default INFO) on the package logger.
        - If config contains 'log_path', attach a FileHandler that writes JSONL
          records. Avoid adding duplicate handlers.
        """
        try:
            log_path = config.get("log_path")
            log_level = config.get("log_level", "INFO")
            level_no = getattr(logging, str(log_level).upper(), logging.INFO)
            if not isinstance(level_no, int):
                level_no = logging.INFO

            pkg_logger = logging.getLogger("cipheranalyzer")
            pkg_logger.setLevel(level_no)

            if not log_path:
                return

            existing = self._log_handlers.get(log_path)
            if existing:
                existing.setLevel(level_no)
                return

            fh = logging.FileHandler(log_path, encoding="utf-8")
            fh.setLevel(level_no)
            fh.setFormatter(_JSONFormatter())
            pkg_logger.addHandler(fh)
            self._log_handlers[log_path] = fh
        except Exception:
            # Logging must never break the engine
            logger.exception("Failed to configure logging")

    def close(self) -> None:
        """Detach and close any file handlers added by `_configure_logging`."""
        pkg_logger = logging.getLogger("cipheranalyzer")
        for handler in self._log_handlers.values():
            pkg_logger.removeHandler(handler)
            handler.close()
        self._log_handlers.clear()

    def register_cipher(self, name: str, plugin: CipherPlugin):
        """Register a cipher plugin and inject a logger for observability."""
        try:
            plugin.logger = logging.getLogger(f"cipheranalyzer.plugins.{name}")
        except Exception:
            pass
        self._ciphers[name] = plugin

    def get_available_ciphers(self) -> List[str]:
        """Get list of available cipher names."""
        return list(self._ciphers.keys())

    def describe_ciphers(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": name,
                "description": plugin.describe(),
                "polyalphabetic": bool(getattr(plugin, "polyalphabetic", False)),
                "module": plugin.__class__.__module__,
            }
            for name, plugin in self._ciphers.items()
        ]

    def get_cipher(self, name: str) -> CipherPlugin:
        try:
            return self._ciphers[name]
        except KeyError:
            raise ValueError(f"unknown cipher {name!r}; available: {sorted(self._ciphers)}") from None

    def encrypt(self, cipher: str, text: str, key: Any) -> str:
        plugin = self.get_cipher(cipher)
        return plugin.encrypt(text, self._parse_key(plugin, key))

    def decrypt(self, cipher: str, text: str, key: Any) -> str:
        plugin = self.get_cipher(cipher)
        return plugin.decrypt(text, self._parse_key(plugin, key))

    @staticmethod
    def _parse_key(plugin: CipherPlugin, key: Any) -> Any:
        try:
            parsed = plugin.parse_key(key)
        except (TypeError, ValueError) as e:
            raise InvalidKeyError(f"{plugin.name}: cannot parse key {key!r}: {e}") from e
        plugin.validate_key(parsed)
        return parsed

    @staticmethod
    def _resolve_dictionary(value: Any) -> Dictionary:
        if value is None:
            return Dictionary()
        if isinstance(value, Dictionary):
            return value
        if isinstance(value, (str, os.PathLike)):
            return Dictionary.from_file(os.fspath(value))
        return Dictionary(value)

    def _check_input(self, text: str, strict: bool, warnings: List[str]) -> None:
        if not st.normalize(text or ""):
            msg = "input has no alphabetic characters; statistics will be zero"
            if strict:
                raise EmptyInputError(msg)
            logger.warning(msg)
            warnings.append(msg)

    def _key_length_hints(self, ciphertext: str, max_key_length: int = 20,
                          kasiski: Optional[KasiskiResult] = None) -> Dict[str, Any]:
        if kasiski is None:
            kasiski = PatternFinder(ciphertext).kasiski_examination()
        return {
            "kasiski": kasiski.to_dict(),
            "ioc_key_lengths": st.ioc_key_length_candidates(ciphertext, max_key_length=max_key_length),
        }

    def solve(self, ciphertext: str, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Enumerate the keyspace of one cipher family and rank the decryptions.

        Keys are pulled lazily in batches; each batch is decrypted, featurized
        and scored on the calling thread or a worker pool. A key budget
        (`max_keys`) or time budget (`budget_ms`) stops enumeration early; the
        candidates already scored are ranked as usual and the scorecard is
        marked truncated.
        """
        config = dict(config or {})
        self._configure_logging(config)
        start = time.perf_counter()

        plugin = self.get_cipher(config.get("cipher"))
        warnings: List[str] = []
        self._check_input(ciphertext, bool(config.get("strict", False)), warnings)

        dictionary = self._resolve_dictionary(config.get("dictionary"))
        profile = config.get("profile") or ENGLISH
        if not isinstance(profile, LanguageProfile):
            raise ValueError("profile must be a LanguageProfile")
        mode = config.get("mode", "basic")
        weights = ScoringWeights.from_mapping(config.get("weights"))
        scorer = Scorer(dictionary, profile, mode, weights)

        top_n = config.get("top_n", DEFAULT_TOP_N)
        batch_size = int(config.get("batch_size", DEFAULT_BATCH_SIZE))
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        max_keys = config.get("max_keys")
        max_keys = int(max_keys) if max_keys is not None else None
        budget_ms = config.get("budget_ms")
        budget_ms = float(budget_ms) if budget_ms is not None else None
        params = dict(config.get("params") or {})

        analysis: Dict[str, Any] = {}
        if plugin.polyalphabetic:
            # one examination feeds both the report and the keyspace ordering
            kasiski = PatternFinder(ciphertext).kasiski_examination()
            analysis = self._key_length_hints(ciphertext, kasiski=kasiski)
            if "preferred_lengths" not in params and params.get("use_kasiski", True):
                max_len = int(params.get("max_key_length", DEFAULT_VIGENERE_MAX_LENGTH))
                params["preferred_lengths"] = preferred_vigenere_lengths(ciphertext, max_len, kasiski=kasiski)

        keyspace = plugin.keyspace(ciphertext, params)
        try:
            keyspace_size: Optional[int] = len(keyspace)
        except TypeError:
            keyspace_size = None
        logger.info("solving %s: %d chars, keyspace=%s, mode=%s",
                    plugin.name, len(ciphertext), keyspace_size, mode)

        source = _BatchSource(keyspace, batch_size, max_keys)
        state = {"candidates": [], "errors": [], "invalid": 0, "budget_hit": False}

        def over_budget() -> bool:
            if budget_ms is None:
                return False
            if (time.perf_counter() - start) * 1000.0 >= budget_ms:
                state["budget_hit"] = True
                return True
            return False

        def collect(out: Dict[str, Any]) -> None:
            state["candidates"].extend(out["candidates"])
            state["errors"].extend(out["errors"])
            state["invalid"] += out["invalid"]

        if config.get("parallel", False):
            self._solve_parallel(plugin, ciphertext, scorer, source, config, over_budget, collect)
        else:
            while not over_budget():
                batch = source.next_batch()
                if not batch:
                    break
                collect(_evaluate_batch(plugin, ciphertext, batch, scorer))

        ranked = rank(state["candidates"], top_n)
        errors = sorted(state["errors"], key=lambda e: e["index"])
        for err in errors:
            logger.warning("candidate %s key=%s failed: %s", err["index"], err["key"], err["reason"])

        truncation_reason = None
        if state["budget_hit"]:
            truncation_reason = "budget_ms"
        elif source.truncated:
            truncation_reason = "max_keys"
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        scorecard = {
            "cipher": plugin.name,
            "mode": mode,
            "keyspace_size": keyspace_size,
            "keys_enumerated": source.enumerated,
            "candidates_scored": len(state["candidates"]),
            "invalid_keys": state["invalid"],
            "errors": len(errors),
            "truncated": truncation_reason is not None,
            "truncation_reason": truncation_reason,
            "best_score": ranked[0].score if ranked else None,
            "time_ms": elapsed_ms,
            "warnings": warnings,
        }
        logger.info("solved %s: %d keys, %d scored, best=%s, %.1f ms",
                    plugin.name, source.enumerated, len(state["candidates"]),
                    scorecard["best_score"], elapsed_ms)

        return {
            "results": [serialize_candidate(c, config.get("preview_len")) for c in ranked],
            "errors": errors,
            "scorecard": scorecard,
            "analysis": analysis,
            "meta": self._build_meta(config, scorer),
        }

    def _solve_parallel(self, plugin, ciphertext, scorer, source, config, over_budget, collect):
        executor_kind = str(config.get("executor", "thread")).lower()
        if executor_kind not in ("thread", "process"):
            raise ValueError(f"unknown executor {executor_kind!r}; expected 'thread' or 'process'")
        max_workers = int(config.get("max_workers", os.cpu_count() or 1))
        if executor_kind == "process":
            # The registered instance is pickled into the worker, configuration included.
            pool = concurrent.futures.ProcessPoolExecutor(max_workers=max_workers)
        else:
            pool = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers)

        def settle(fut, batch):
            try:
                out = fut.result()
            except Exception as e:
                logger.exception("batch of %d keys from index %d failed", len(batch), batch[0][0])
                out = _failed_batch(plugin, batch, e)
            collect(out)

        # Keep a bounded number of batches in flight so enumeration stays lazy.
        max_in_flight = max_workers * 2
        in_flight: Dict[concurrent.futures.Future, List[Tuple[int, Any]]] = {}
        exhausted = False
        with pool:
            while True:
                stop = over_budget()
                while not stop and not exhausted and len(in_flight) < max_in_flight:
                    batch = source.next_batch()
                    if not batch:
                        exhausted = True
                        break
                    in_flight[pool.submit(_evaluate_batch, plugin, ciphertext, batch, scorer)] = batch
                if stop or not in_flight:
                    break
                done, _ = concurrent.futures.wait(
                    in_flight, return_when=concurrent.futures.FIRST_COMPLETED)
                for fut in done:
                    settle(fut, in_flight.pop(fut))
            # Cancel what has not started; batches already running finish and count.
            for fut, batch in in_flight.items():
                if not fut.cancel():
                    settle(fut, batch)

    def analyze(self, text: str, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Statistical report for a text plus Kasiski and IoC key-length hints.

        Also carries the per-letter frequency table, a rank-matched substitution
        guess, the distance to each candidate language profile and the
        dictionary-based language signals.
        """
        config = dict(config or {})
        self._configure_logging(config)
        warnings: List[str] = []
        self._check_input(text, bool(config.get("strict", False)), warnings)
        profile = config.get("profile") or ENGLISH
        profiles = list(config.get("profiles") or [profile])
        dictionary = self._resolve_dictionary(config.get("dictionary"))
        max_key_length = int(config.get("max_key_length", 20))

        finder = PatternFinder(text)
        patterns = finder.find_repeating_patterns()[: int(config.get("max_patterns", 10))]
        report = {
            "statistics": st.text_statistics(text, profile),
            "frequency_table": st.character_frequency_table(text, profile),
            "substitution_suggestions": [
                {"cipher": c, "plain": p} for c, p in st.suggest_substitutions(text, profile)
            ],
            "profile_distances": {p.name: st.profile_distance(text, p) for p in profiles},
            "probable_language": st.detect_probable_language(text, profiles),
            "language": {
                "confidence": dictionary.language_confidence(text),
                "grammar_score": grammar_score(text),
                "valid_words": dictionary.identify_valid_words(text),
                "common_phrases": dictionary.find_common_phrases(text),
            },
            "key_length_hints": self._key_length_hints(text, max_key_length),
            "repeating_patterns": [
                {"sequence": p.sequence, "positions": list(p.positions), "occurrences": p.occurrences}
                for p in patterns
            ],
            "pattern_density": finder.pattern_density(),
            "warnings": warnings,
        }
        return {"analysis": report, "meta": self._build_meta(config)}

    def _build_meta(self, config: Dict[str, Any], scorer: Optional[Scorer] = None) -> Dict[str, Any]:
        meta: Dict[str, Any] = {
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "python": sys.version.split()[0],
            "platform": platform.platform(),
        }
        for dist in ("cipher-analyzer", "numpy", "scipy"):
            try:
                meta[f"{dist}_version"] = importlib.metadata.version(dist)
            except importlib.metadata.PackageNotFoundError:
                meta[f"{dist}_version"] = None
        meta["plugins"] = {name: p.__class__.__module__ for name, p in self._ciphers.items()}
        if scorer is not None:
            meta["scoring"] = scorer.describe()
            meta["dictionary_size"] = len(scorer.dictionary)
            meta["profile"] = scorer.profile.name
        meta["parallel"] = bool(config.get("parallel", False))
        if meta["parallel"]:
            meta["executor"] = config.get("executor", "thread")
        return meta


class _JSONFormatter(logging.Formatter):
    def format(self, record):
        rec = {
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            rec["exc"] = self.formatException(record.exc_info)
        return json.dumps(rec, ensure_ascii=False)
