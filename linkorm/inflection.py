"""
English word inflection used to derive table names, join-table names and
association accessor names.

Rules are tried in order and the first matching one wins. Case of the
matched stem is preserved, only the replaced suffix is emitted lowercase.
"""
import re

UNCOUNTABLES = {
    "equipment", "fish", "information", "jeans", "money", "police",
    "rice", "series", "sheep", "species",
}

IRREGULARS = [
    ("person", "people"),
    ("man", "men"),
    ("child", "children"),
    ("sex", "sexes"),
    ("move", "moves"),
    ("zombie", "zombies"),
]

PLURALS = [
    (r"(quiz)$", r"\1zes"),
    (r"^(oxen)$", r"\1"),
    (r"^(ox)$", r"\1en"),
    (r"(m|l)ice$", r"\1ice"),
    (r"(m|l)ouse$", r"\1ice"),
    (r"(matr|vert|ind)(?:ix|ex)$", r"\1ices"),
    (r"(x|ch|ss|sh)$", r"\1es"),
    (r"([^aeiouy]|qu)y$", r"\1ies"),
    (r"(hive)$", r"\1s"),
    (r"([^f])fe$", r"\1ves"),
    (r"([lr])f$", r"\1ves"),
    (r"sis$", "ses"),
    (r"([ti])a$", r"\1a"),
    (r"([ti])um$", r"\1a"),
    (r"(buffal|tomat|potat)o$", r"\1oes"),
    (r"(bu)s$", r"\1ses"),
    (r"(alias|status)$", r"\1es"),
    (r"(octop|vir)i$", r"\1i"),
    (r"(octop|vir)us$", r"\1i"),
    (r"^(ax|test)is$", r"\1es"),
    (r"s$", "s"),
    (r"$", "s"),
]

SINGULARS = [
    (r"(database)s$", r"\1"),
    (r"(quiz)zes$", r"\1"),
    (r"(matr)ices$", r"\1ix"),
    (r"(vert|ind)ices$", r"\1ex"),
    (r"^(ox)en", r"\1"),
    (r"(alias|status)(es)?$", r"\1"),
    (r"(octop|vir)(us|i)$", r"\1us"),
    (r"^(a)x[ie]s$", r"\1xis"),
    (r"(cris|test)(is|es)$", r"\1is"),
    (r"(shoe)s$", r"\1"),
    (r"(o)es$", r"\1"),
    (r"(bus)(es)?$", r"\1"),
    (r"(m|l)ice$", r"\1ouse"),
    (r"(x|ch|ss|sh)es$", r"\1"),
    (r"(m)ovies$", r"\1ovie"),
    (r"([^aeiouy]|qu)ies$", r"\1y"),
    (r"([lr])ves$", r"\1f"),
    (r"(tive)s$", r"\1"),
    (r"(hive)s$", r"\1"),
    (r"([^f])ves$", r"\1fe"),
    (r"((a)naly|(b)a|(d)iagno|(p)arenthe|(p)rogno|(s)ynop|(t)he)(sis|ses)$", r"\1sis"),
    (r"([ti])a$", r"\1um"),
    (r"(n)ews$", r"\1ews"),
    (r"(ss)$", r"\1"),
    (r"s$", ""),
]


def _compile(rules):
    return [(re.compile(pattern, re.IGNORECASE), replacement) for pattern, replacement in rules]


def _irregular_rules(pairs):
    plurals, singulars = [], []
    for singular, plural in pairs:
        plurals.append((rf"({singular[0]}){singular[1:]}$", rf"\g<1>{plural[1:]}"))
        plurals.append((rf"({plural[0]}){plural[1:]}$", rf"\g<1>{plural[1:]}"))
        singulars.append((rf"({plural[0]}){plural[1:]}$", rf"\g<1>{singular[1:]}"))
    return plurals, singulars


_IRREGULAR_PLURALS, _IRREGULAR_SINGULARS = _irregular_rules(IRREGULARS)
_PLURAL_RULES = _compile(_IRREGULAR_PLURALS + PLURALS)
_SINGULAR_RULES = _compile(_IRREGULAR_SINGULARS + SINGULARS)


def _is_uncountable(word):
    parts = re.split(r"[^a-zA-Z]+", word)
    return bool(parts) and parts[-1].lower() in UNCOUNTABLES


def _apply(word, rules):
    if not word or _is_uncountable(word):
        return word
    for pattern, replacement in rules:
        if pattern.search(word):
            return pattern.sub(replacement, word, count=1)
    return word


def pluralize(word):
    """
    >>> pluralize("Task")
    'Tasks'
    >>> pluralize("wp_table1")
    'wp_table1s'
    """
    return _apply(word, _PLURAL_RULES)


def singularize(word):
    """
    >>> singularize("Tasks")
    'Task'
    """
    return _apply(word, _SINGULAR_RULES)


def underscore(word):
    """CamelCase to snake_case: ``TaskItems`` -> ``task_items``."""
    word = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", word)
    word = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", word)
    return word.replace("-", "_").lower()


def combine_table_names(table_name1, table_name2):
    """Join-table name for two tables, independent of declaration order."""
    return "".join(sorted([table_name1, table_name2]))
