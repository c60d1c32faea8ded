"""
error_insight/backends/local.py - Rule-based local backend

Deterministic guidance without any network access. Failures are matched
against a table of (exception kind, message pattern) rules; the first match
selects a canned text in the configured language.

Rule order matters: specific message patterns are listed before the
generic rule for the same exception kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple
import re

from ..config import BackendKind, InsightConfig
from ..i18n import normalize_language
from ..schemas import FailureRecord, Frame
from .protocol import BackendResult


@dataclass(frozen=True)
class Rule:
    """One guidance rule."""

    key: str
    kinds: Tuple[str, ...] = ()
    pattern: Optional[Pattern[str]] = None

    def match(self, failure: FailureRecord) -> Optional[Dict[str, str]]:
        if self.kinds and failure.kind not in self.kinds:
            return None
        if self.pattern is None:
            return {}
        m = self.pattern.search(failure.message or "")
        if m is None:
            return None
        return {k: v for k, v in m.groupdict().items() if v is not None}


def _rule(key: str, kinds: Iterable[str], pattern: Optional[str] = None) -> Rule:
    return Rule(
        key=key,
        kinds=tuple(kinds),
        pattern=re.compile(pattern) if pattern else None,
    )


_CONNECTION_KINDS = (
    "ConnectionError",
    "ConnectionRefusedError",
    "ConnectionResetError",
    "ConnectionAbortedError",
    "BrokenPipeError",
    "TimeoutError",
    "ConnectError",
    "ConnectTimeout",
    "ReadTimeout",
)

RULES: List[Rule] = [
    _rule("zero_division", ["ZeroDivisionError"]),
    _rule("key_missing", ["KeyError"], r"^(?P<key>.+)$"),
    _rule("key_missing", ["KeyError"]),
    _rule("index_range", ["IndexError"]),
    _rule("none_attribute", ["AttributeError"], r"'NoneType' object has no attribute '(?P<attr>\w+)'"),
    _rule("module_attribute", ["AttributeError"], r"module '(?P<module>[\w.]+)' has no attribute '(?P<attr>\w+)'"),
    _rule("attribute_missing", ["AttributeError"], r"'(?P<type>[\w.]+)' object has no attribute '(?P<attr>\w+)'"),
    _rule("name_undefined", ["NameError", "UnboundLocalError"], r"'(?P<name>\w+)'"),
    _rule("module_missing", ["ModuleNotFoundError"], r"No module named '(?P<module>[\w.]+)'"),
    _rule("import_name", ["ImportError"], r"cannot import name '(?P<name>\w+)'"),
    _rule("module_missing", ["ModuleNotFoundError", "ImportError"]),
    _rule("none_subscript", ["TypeError"], r"'NoneType' object is not (?:subscriptable|iterable)"),
    _rule("call_signature", ["TypeError"], r"(?P<func>[\w.<>]+)\(\) (?:takes|missing|got an unexpected|got multiple)"),
    _rule("operand_types", ["TypeError"], r"unsupported operand type\(s\) for (?P<op>\S+): '(?P<left>[\w.]+)' and '(?P<right>[\w.]+)'"),
    _rule("not_callable", ["TypeError"], r"'(?P<type>[\w.]+)' object is not callable"),
    _rule("str_concat", ["TypeError"], r"can only concatenate str|must be str, not"),
    _rule("int_literal", ["ValueError"], r"invalid literal for (?:int|float)\(\)(?: with base \d+)?: (?P<value>.+)"),
    _rule("unpack", ["ValueError"], r"values to unpack"),
    _rule("json_decode", ["JSONDecodeError"]),
    _rule("file_missing", ["FileNotFoundError"], r"No such file or directory: '(?P<path>.+)'"),
    _rule("file_missing", ["FileNotFoundError", "NotADirectoryError", "IsADirectoryError"]),
    _rule("permission", ["PermissionError"]),
    _rule("recursion", ["RecursionError"]),
    _rule("unicode", ["UnicodeDecodeError", "UnicodeEncodeError"]),
    _rule("connection", _CONNECTION_KINDS),
    _rule("assertion", ["AssertionError"]),
    _rule("not_implemented", ["NotImplementedError"]),
    _rule("memory", ["MemoryError"]),
]


GUIDANCE: Dict[str, Dict[str, str]] = {
    "en": {
        "zero_division": (
            "A value was divided by zero. Check the divisor before the division "
            "at {location}, or guard the calculation for empty inputs."
        ),
        "key_missing": (
            "The key {key} is not present in the mapping being read. Use "
            ".get() with a default, or verify where the mapping is filled."
        ),
        "index_range": (
            "A sequence was indexed past its end. Check the length before "
            "indexing and look for off-by-one errors in loops."
        ),
        "none_attribute": (
            "The attribute '{attr}' was read from None. A value expected to be "
            "an object is missing: check the function or lookup that produced it."
        ),
        "module_attribute": (
            "Module '{module}' has no attribute '{attr}'. The name may be misspelt, "
            "removed in the installed version, or shadowed by a local file with "
            "the same name as the module."
        ),
        "attribute_missing": (
            "Objects of type '{type}' have no attribute '{attr}'. Check the spelling "
            "and whether the object is of the type you expect."
        ),
        "name_undefined": (
            "The name '{name}' is used before it is defined. Check for typos, a "
            "missing import, or a variable assigned only in some branches."
        ),
        "module_missing": (
            "The module {module} cannot be imported. Install the package in the "
            "active environment or fix the import path."
        ),
        "import_name": (
            "The name '{name}' cannot be imported. It may have been renamed or "
            "moved, or the two modules import each other circularly."
        ),
        "none_subscript": (
            "None was indexed or iterated. A function probably returned None "
            "where a collection was expected."
        ),
        "call_signature": (
            "{func}() was called with the wrong arguments. Compare the call "
            "with the function signature."
        ),
        "operand_types": (
            "The operator {op} cannot combine '{left}' and '{right}'. Convert one "
            "of the operands to a compatible type."
        ),
        "not_callable": (
            "An object of type '{type}' was called like a function. A variable "
            "may be shadowing a function with the same name."
        ),
        "str_concat": (
            "A string was combined with a non-string value. Convert the value "
            "with str() or use an f-string."
        ),
        "int_literal": (
            "The value {value} could not be parsed as a number. Validate or "
            "clean the input before converting it."
        ),
        "unpack": (
            "The number of values does not match the number of targets in an "
            "unpacking assignment. Check the shape of the data."
        ),
        "json_decode": (
            "The text being parsed is not valid JSON. Log the raw payload and "
            "check its source, encoding and content type."
        ),
        "file_missing": (
            "The file {path} does not exist. Check the path, the current working "
            "directory, and whether the file is created before it is read."
        ),
        "permission": (
            "The process is not allowed to access a file or resource. Check "
            "ownership and permissions, or the user the process runs as."
        ),
        "recursion": (
            "The maximum recursion depth was exceeded. Check the base case of "
            "recursive functions and look for objects referencing themselves."
        ),
        "unicode": (
            "Text could not be decoded or encoded. Specify the correct encoding "
            "explicitly when reading or writing."
        ),
        "connection": (
            "A network connection failed or timed out. Check that the remote "
            "service is reachable and consider retries with a timeout."
        ),
        "assertion": (
            "An assertion failed: an internal assumption of the code does not "
            "hold for these inputs."
        ),
        "not_implemented": (
            "A method that has no implementation yet was called. A subclass is "
            "expected to override it."
        ),
        "memory": (
            "The process ran out of memory. Process the data in smaller chunks "
            "or stream it."
        ),
        "generic": (
            "{kind} raised at {location}: {message}. Read the innermost frames "
            "of the stack trace first; they show where the failure started."
        ),
    },
    "it": {
        "zero_division": (
            "Un valore è stato diviso per zero. Controlla il divisore prima della "
            "divisione in {location}, oppure gestisci il caso di input vuoti."
        ),
        "key_missing": (
            "La chiave {key} non è presente nel dizionario letto. Usa .get() con "
            "un valore predefinito o verifica dove viene popolato."
        ),
        "index_range": (
            "Una sequenza è stata indicizzata oltre la sua fine. Controlla la "
            "lunghezza prima di accedere e cerca errori di uno nei cicli."
        ),
        "none_attribute": (
            "L'attributo '{attr}' è stato letto da None. Manca un valore che "
            "doveva essere un oggetto: controlla la funzione che lo ha prodotto."
        ),
        "module_attribute": (
            "Il modulo '{module}' non ha l'attributo '{attr}'. Il nome potrebbe "
            "essere errato, rimosso nella versione installata o oscurato da un "
            "file locale con lo stesso nome."
        ),
        "attribute_missing": (
            "Gli oggetti di tipo '{type}' non hanno l'attributo '{attr}'. Controlla "
            "il nome e il tipo effettivo dell'oggetto."
        ),
        "name_undefined": (
            "Il nome '{name}' è usato prima di essere definito. Controlla refusi, "
            "import mancanti o variabili assegnate solo in alcuni rami."
        ),
        "module_missing": (
            "Il modulo {module} non può essere importato. Installa il pacchetto "
            "nell'ambiente attivo o correggi il percorso di import."
        ),
        "import_name": (
            "Il nome '{name}' non può essere importato. Potrebbe essere stato "
            "rinominato o spostato, oppure c'è un import circolare."
        ),
        "none_subscript": (
            "È stato indicizzato o iterato None. Probabilmente una funzione ha "
            "restituito None invece di una collezione."
        ),
        "call_signature": (
            "{func}() è stata chiamata con argomenti errati. Confronta la chiamata "
            "con la firma della funzione."
        ),
        "operand_types": (
            "L'operatore {op} non può combinare '{left}' e '{right}'. Converti uno "
            "dei due operandi in un tipo compatibile."
        ),
        "not_callable": (
            "Un oggetto di tipo '{type}' è stato chiamato come una funzione. Una "
            "variabile potrebbe oscurare una funzione con lo stesso nome."
        ),
        "str_concat": (
            "Una stringa è stata combinata con un valore non stringa. Converti il "
            "valore con str() o usa una f-string."
        ),
        "int_literal": (
            "Il valore {value} non può essere convertito in numero. Valida o "
            "ripulisci l'input prima della conversione."
        ),
        "unpack": (
            "Il numero di valori non corrisponde al numero di variabili "
            "nell'assegnazione. Controlla la forma dei dati."
        ),
        "json_decode": (
            "Il testo analizzato non è JSON valido. Registra il contenuto grezzo "
            "e controllane origine, codifica e content type."
        ),
        "file_missing": (
            "Il file {path} non esiste. Controlla il percorso, la directory di "
            "lavoro e se il file viene creato prima di essere letto."
        ),
        "permission": (
            "Il processo non ha i permessi per accedere a un file o a una risorsa. "
            "Controlla proprietario e permessi."
        ),
        "recursion": (
            "È stata superata la profondità massima di ricorsione. Controlla il "
            "caso base delle funzioni ricorsive."
        ),
        "unicode": (
            "Il testo non può essere decodificato o codificato. Specifica "
            "esplicitamente la codifica corretta."
        ),
        "connection": (
            "Una connessione di rete è fallita o è scaduta. Verifica che il "
            "servizio remoto sia raggiungibile."
        ),
        "assertion": (
            "Un'asserzione è fallita: un'ipotesi interna del codice non vale per "
            "questi input."
        ),
        "not_implemented": (
            "È stato chiamato un metodo non ancora implementato. Una sottoclasse "
            "dovrebbe sovrascriverlo."
        ),
        "memory": (
            "Il processo ha esaurito la memoria. Elabora i dati in blocchi più "
            "piccoli o in streaming."
        ),
        "generic": (
            "{kind} sollevata in {location}: {message}. Leggi prima i frame più "
            "interni dello stack trace: mostrano dove è iniziato l'errore."
        ),
    },
}


class _Defaults(dict):
    def __missing__(self, key: str) -> str:
        return "?"


class LocalBackend:
    """
    Deterministic rule-based explanations.

    Looks at the failure first and then at its causes; the first specific
    rule that matches wins. Always succeeds.
    """

    kind = BackendKind.LOCAL
    wants_state = False

    def __init__(self, rules: Optional[Sequence[Rule]] = None):
        self.rules = list(rules) if rules is not None else RULES

    def match(self, failure: FailureRecord) -> Tuple[str, FailureRecord, Dict[str, str]]:
        """Return (guidance key, matched record, captured fields)."""
        for record in (failure,) + tuple(failure.causes):
            for rule in self.rules:
                captured = rule.match(record)
                if captured is not None:
                    return rule.key, record, captured
        return "generic", failure, {}

    def guidance(self, failure: FailureRecord, language: str) -> str:
        key, record, captured = self.match(failure)
        catalog = GUIDANCE.get(normalize_language(language), GUIDANCE["en"])
        text = catalog.get(key) or GUIDANCE["en"][key]

        values = _Defaults(
            kind=record.kind or "Error",
            message=record.message,
            location=record.location or "?",
            key=record.message,
            module=record.message,
            path=record.message,
        )
        values.update(captured)
        return text.format_map(values)

    async def explain(
        self,
        failure: FailureRecord,
        state: Optional[Sequence[Frame]],
        config: InsightConfig,
    ) -> BackendResult:
        return BackendResult(narrative=self.guidance(failure, config.language))
