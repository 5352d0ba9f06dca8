#!/usr/bin/env python3
"""
Static unit table.

Each category lists (name, symbol, factor to the category base, aliases).
Currency factors are static USD fallbacks used until live rates arrive; CSS
factors are placeholders since CSS conversions go through pixels using the
registry's configurable bases.
"""
from __future__ import annotations

# Length (base: meter)
LENGTH_UNITS = [
    ("meter", "m", 1.0, ["meters", "metre", "metres"]),
    ("kilometer", "km", 1000.0, ["kilometers", "kilometre", "kilometres"]),
    ("centimeter", "cm", 0.01, ["centimeters", "centimetre", "centimetres"]),
    ("millimeter", "mm", 0.001, ["millimeters", "millimetre", "millimetres"]),
    ("mile", "mi", 1609.344, ["miles"]),
    ("yard", "yd", 0.9144, ["yards"]),
    ("foot", "ft", 0.3048, ["feet"]),
    ("inch", '"', 0.0254, ["inches", "in"]),
]

# Mass (base: kilogram)
MASS_UNITS = [
    ("kilogram", "kg", 1.0, ["kilograms", "kilo", "kilos"]),
    ("gram", "g", 0.001, ["grams"]),
    ("milligram", "mg", 0.000001, ["milligrams"]),
    ("pound", "lb", 0.453592, ["pounds", "lbs"]),
    ("ounce", "oz", 0.0283495, ["ounces"]),
    ("ton", "t", 1000.0, ["tons", "tonne", "tonnes"]),
]

# Time (base: second)
TIME_UNITS = [
    ("second", "s", 1.0, ["seconds", "sec", "secs"]),
    ("minute", "min", 60.0, ["minutes", "mins"]),
    ("hour", "hr", 3600.0, ["hours", "hrs"]),
    ("day", "day", 86400.0, ["days"]),
    ("week", "wk", 604800.0, ["weeks", "wks"]),
    ("month", "mo", 2629746.0, ["months"]),
    ("year", "yr", 31556952.0, ["years", "yrs"]),
]

# Data (base: byte, binary multiples)
DATA_UNITS = [
    ("byte", "B", 1.0, ["bytes"]),
    ("kilobyte", "KB", 1024.0, ["kilobytes", "kb"]),
    ("megabyte", "MB", 1048576.0, ["megabytes", "mb"]),
    ("gigabyte", "GB", 1073741824.0, ["gigabytes", "gb"]),
    ("terabyte", "TB", 1099511627776.0, ["terabytes", "tb"]),
]

# Temperature converts through Kelvin, so the factors are unused
TEMPERATURE_UNITS = [
    ("celsius", "°C", 1.0, ["centigrade", "degc"]),
    ("fahrenheit", "°F", 1.0, ["degf"]),
    ("kelvin", "K", 1.0, ["kelvins"]),
]

# Currency (base: USD). The flag marks a symbol written before the amount.
CURRENCY_UNITS = [
    ("usd", "$", 1.0, True, ["dollar", "dollars"]),
    ("gbp", "£", 1.27, True, ["sterling"]),
    ("jpy", "¥", 0.0067, True, ["yen"]),
    ("cny", "CN¥", 0.14, True, ["yuan", "rmb"]),
    ("krw", "₩", 0.00075, True, ["won"]),
    ("inr", "₹", 0.012, True, ["rupee", "rupees"]),
    ("eur", "€", 1.08, False, ["euro", "euros"]),
    ("thb", "THB", 0.029, False, ["baht"]),
    ("chf", "CHF", 1.13, False, ["franc", "francs"]),
    ("sek", "kr", 0.096, False, ["krona", "kronor"]),
    ("nok", "kr", 0.094, False, []),
    ("dkk", "kr", 0.15, False, []),
    ("pln", "zł", 0.25, False, ["zloty"]),
    ("czk", "Kč", 0.044, False, ["koruna"]),
    ("rub", "₽", 0.011, False, ["ruble", "rubles"]),
    ("brl", "R$", 0.20, True, ["real", "reais"]),
    ("aud", "A$", 0.66, True, []),
    ("cad", "C$", 0.74, True, []),
    ("sgd", "S$", 0.75, True, []),
    ("hkd", "HK$", 0.13, True, []),
    ("mxn", "MX$", 0.058, True, ["peso", "pesos"]),
]

# Glyphs the tokenizer and evaluator read as a currency prefix
CURRENCY_GLYPHS = {
    "$": "usd",
    "€": "eur",
    "£": "gbp",
    "¥": "jpy",
    "฿": "thb",
    "₩": "krw",
    "₹": "inr",
    "₽": "rub",
}

# Area (base: square meter)
AREA_UNITS = [
    ("sqm", "m²", 1.0, ["sqmeter", "sqmeters", "squaremeter", "squaremeters"]),
    ("sqkm", "km²", 1000000.0, ["sqkilometer", "sqkilometers"]),
    ("sqft", "ft²", 0.092903, ["sqfoot", "sqfeet", "squarefoot", "squarefeet"]),
    ("acre", "ac", 4046.86, ["acres"]),
    ("hectare", "ha", 10000.0, ["hectares"]),
]

# Volume (base: liter)
VOLUME_UNITS = [
    ("liter", "L", 1.0, ["liters", "litre", "litres", "l"]),
    ("milliliter", "mL", 0.001, ["milliliters", "ml"]),
    ("gallon", "gal", 3.78541, ["gallons"]),
    ("quart", "qt", 0.946353, ["quarts"]),
    ("pint", "pt", 0.473176, ["pints"]),
    ("cup", "cup", 0.236588, ["cups"]),
    ("floz", "fl oz", 0.0295735, ["fluidounce", "fluidounces"]),
    ("tablespoon", "tbsp", 0.0147868, ["tablespoons", "tbsp."]),
    ("teaspoon", "tsp", 0.00492892, ["teaspoons", "tsp."]),
    ("cubicmeter", "m³", 1000.0, ["cbm", "cubicmeters", "cubicmetre", "cubicmetres"]),
]

# CSS (base: pixel). Registered last so "pt" resolves to the point, not the pint.
CSS_UNITS = [
    ("pixel", "px", 1.0, ["pixels"]),
    ("em", "em", 16.0, ["ems"]),
    ("rem", "rem", 16.0, ["rems"]),
    ("point", "pt", 1.333, ["points"]),
]

DEFAULT_EM_SIZE = 16.0
DEFAULT_REM_SIZE = 16.0
DEFAULT_PPI = 96.0
