"""Embedded frequency tables.

Each list is ordered by descending frequency within its part of speech,
so a word's rank is its 1-based position in the list.
"""

CROATIAN = {
    "noun": [
        "dan", "vrijeme", "dio", "način", "godina", "život", "država",
        "ljudi", "svijet", "posao", "mjesto", "kuća", "grad", "stvar",
        "dijete", "čovjek", "ime", "ruka", "glava", "oko", "voda",
        "riječ", "put", "noć", "žena", "prijatelj", "obitelj", "novac",
        "škola", "jezik",
    ],
    "verb": [
        "biti", "moći", "htjeti", "imati", "reći", "znati", "ići",
        "vidjeti", "dati", "doći", "uzeti", "raditi", "pričati",
        "misliti", "naći", "trebati", "živjeti", "govoriti", "voljeti",
        "čekati",
    ],
    "adjective": [
        "dobar", "veliki", "mali", "novi", "stari", "prvi", "drugi",
        "vlastiti", "pravi", "važan", "lijep", "mlad", "cijeli",
        "zadnji", "dug", "loš", "bijel", "crn", "hrvatski", "siguran",
    ],
    "adverb": [
        "sada", "ovdje", "tamo", "danas", "sutra", "jučer", "uvijek",
        "nikad", "često", "dobro", "brzo", "polako", "još", "već",
        "samo", "vrlo", "možda", "zajedno", "kasno", "rano",
    ],
    "preposition": [
        "u", "na", "za", "s", "iz", "do", "od", "po", "prema", "kroz",
        "o", "bez", "kod", "nakon", "pred",
    ],
    "pronoun": [
        "ja", "ti", "on", "ona", "ono", "mi", "vi", "oni", "se", "to",
        "ovaj", "taj", "što", "tko", "netko",
    ],
    "conjunction": [
        "i", "a", "ali", "ili", "da", "ako", "jer", "kad", "dok",
        "nego", "pa", "niti",
    ],
    "interjection": [
        "bok", "hej", "joj", "eh", "oh", "ajme", "hura", "pst", "uh", "aha",
    ],
}

SPANISH = {
    "noun": [
        "día", "tiempo", "año", "cosa", "hombre", "mundo", "vida", "mano",
        "parte", "niño", "casa", "mujer", "país", "forma", "caso",
        "lugar", "trabajo", "palabra", "agua", "ciudad",
    ],
    "verb": [
        "ser", "estar", "tener", "hacer", "poder", "decir", "ir", "ver",
        "dar", "saber", "querer", "llegar", "pasar", "deber", "poner",
    ],
    "adjective": [
        "bueno", "grande", "nuevo", "primero", "mismo", "otro", "pequeño",
        "mejor", "importante", "largo", "viejo", "alto", "joven",
        "propio", "último",
    ],
    "adverb": [
        "no", "más", "ya", "muy", "también", "así", "bien", "siempre",
        "ahora", "aquí", "después", "hoy", "nunca", "mal", "antes",
    ],
    "preposition": [
        "de", "en", "a", "por", "con", "para", "sin", "sobre", "entre",
        "hasta", "desde", "contra", "hacia", "según", "bajo",
    ],
    "pronoun": [
        "yo", "tú", "él", "ella", "nosotros", "ellos", "usted", "me",
        "te", "se", "lo", "le", "esto", "eso", "algo",
    ],
    "conjunction": [
        "y", "o", "pero", "que", "porque", "si", "aunque", "ni", "sino",
        "pues", "como", "cuando",
    ],
    "interjection": [
        "ay", "oh", "hola", "vaya", "ojalá", "bravo", "olé", "uf", "eh", "ah",
    ],
}

WORD_LISTS = {
    "hr": CROATIAN,
    "es": SPANISH,
}
