"""Static naming-convention tables used by the rule-based classifier.

Sound-effects vendors follow a handful of loose conventions: a CamelCase
category prefix before the first underscore (``AMBUrbn_``, ``WATRDrip_``),
vendor-specific leading codes, and descriptive phrases spread across the
folder path and filename.  The tables below encode those conventions as
read-only, process-wide constants:

* :data:`PREFIX_RULES` - exact prefix token -> ``(tier1, tier2)``.  Lookup
  is case insensitive and falls back to progressive right-truncation.
* :data:`VENDOR_RULES` - anchored regexes tested against the filename stem.
* :data:`PHRASE_RULES` - substrings searched in the normalized path text.
* :data:`TOKEN_RULES` - word tokens counted against the word-token set.

Vendor, phrase and token rules are additive: several rules may fire for
one file and their weights accumulate per ``(tier1, tier2)`` bucket.

:data:`STOPWORDS` and :data:`SYNONYMS` are shared with the tokenizer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Pattern, Tuple


@dataclass(frozen=True)
class VendorRule:
    pattern: Pattern[str]
    tier1: str
    tier2: str
    weight: float


@dataclass(frozen=True)
class PhraseRule:
    tier1: str
    tier2: str
    phrases: Tuple[str, ...]
    weight_per_hit: float


@dataclass(frozen=True)
class TokenRule:
    tier1: str
    tier2: str
    tokens: Tuple[str, ...]
    weight_per_hit: float


def _vendor(pattern: str, tier1: str, tier2: str, weight: float) -> VendorRule:
    return VendorRule(re.compile(pattern, re.IGNORECASE), tier1, tier2, float(weight))


# ---------------------------------------------------------------------------
# Shared vocabulary

# Kept small on purpose: sound libraries carry lots of recording-technique
# and format noise that says nothing about the category.
STOPWORDS = frozenset(
    {
        "a", "an", "and", "or", "the", "to", "of", "in", "on", "for", "with", "at", "by", "from",
        "mono", "stereo", "loop", "loops", "one", "shot", "oneshot", "take",
        "v1", "v2", "v3", "v4", "v5", "final", "edit", "mix", "master",
        "dry", "wet", "close", "far", "dist", "distant", "near", "room", "mic", "mics",
        "sfx", "fx", "wav", "mp3", "flac", "ogg", "aiff", "aif", "aac", "m4a",
    }
)

SYNONYMS: Mapping[str, str] = MappingProxyType(
    {
        "flyby": "passby",
        "flybys": "passby",
        "passbys": "passby",
        "driveby": "passby",
        "ambiance": "ambience",
        "ambiances": "ambience",
        "ambiences": "ambience",
        "atmosphere": "ambience",
        "atmospheres": "ambience",
        "atmos": "ambience",
        "whooshes": "whoosh",
        "swoosh": "whoosh",
        "swooshes": "whoosh",
        "swish": "whoosh",
        "footsteps": "footstep",
        "gunshots": "gunshot",
        "impacts": "impact",
        "hits": "hit",
        "doors": "door",
        "birds": "bird",
        "cars": "car",
        "vehicles": "vehicle",
        "engines": "engine",
        "dialog": "dialogue",
        "voices": "voice",
        "risers": "riser",
        "drones": "drone",
        "clicks": "click",
        "buttons": "button",
        "waves": "wave",
        "drips": "drip",
        "creaks": "creak",
        "roomtones": "roomtone",
    }
)


# ---------------------------------------------------------------------------
# Prefix table (token before the first underscore)

PREFIX_RULES: Mapping[str, Tuple[str, str]] = MappingProxyType(
    {
        # Ambient
        "AMB": ("Ambient", "Ambience"),
        "AMBUrbn": ("Ambient", "Ambience/Urban"),
        "AMBTown": ("Ambient", "Ambience/Town"),
        "AMBForst": ("Ambient", "Ambience/Forest"),
        "AMBTran": ("Ambient", "Ambience/Transport"),
        "AMBCnst": ("Ambient", "Ambience/Construction"),
        "AMBInd": ("Ambient", "Ambience/Industrial"),
        "AMBRoom": ("Ambient", "Ambience/Roomtone"),
        "AMBPubl": ("Ambient", "Ambience/Public"),
        "AMBNaut": ("Ambient", "Ambience/Nautical"),
        "AMBRest": ("Ambient", "Ambience/Restaurant"),
        "AMBUndr": ("Ambient", "Ambience/Underground"),
        "AMBOffc": ("Ambient", "Ambience/Office"),
        "AMBMisc": ("Ambient", "Ambience/Misc"),
        "AMBDsgn": ("Ambient", "Ambience/Designed"),
        # Weather
        "RAIN": ("Weather", "Rain"),
        "RAINVege": ("Weather", "Rain"),
        "WIND": ("Weather", "Wind"),
        "WINDVege": ("Weather", "Wind"),
        "THUN": ("Weather", "Thunder"),
        # Water
        "WATR": ("Water", "General"),
        "WATRFlow": ("Water", "Flow"),
        "WATRWave": ("Water", "Waves"),
        "WATRSurf": ("Water", "Surf"),
        "WATRLap": ("Water", "Lapping"),
        "WATRDrip": ("Water", "Drips"),
        "WATRDran": ("Water", "Drains"),
        "WATRImpt": ("Water", "Impacts"),
        "WATRMvmt": ("Water", "Movement"),
        "WATRUndwtr": ("Water", "Underwater"),
        "WATRFizz": ("Water", "Fizz"),
        "AMBUndwtr": ("Water", "Underwater"),
        # UI
        "UI": ("UI", "General"),
        "UIClick": ("UI", "Clicks"),
        "UIData": ("UI", "Data"),
        "UIAlert": ("UI", "Alerts"),
        "UIMvmt": ("UI", "Movement"),
        "UIMisc": ("UI", "Misc"),
        # Weapons
        "GUN": ("Weapons", "Guns"),
        "GUNRif": ("Weapons", "Guns/Rifle"),
        "GUNShotg": ("Weapons", "Guns/Shotgun"),
        "GUNMech": ("Weapons", "Guns/Mechanics"),
        "WEAP": ("Weapons", "General"),
        "WEAPSwrd": ("Weapons", "Melee/Sword"),
        "WEAPAxe": ("Weapons", "Melee/Axe"),
        "WEAPArmr": ("Weapons", "Armor/Blocks"),
        "SCIWeap": ("Weapons", "SciFi"),
        # Vehicles / transport
        "VEH": ("Vehicles", "General"),
        "VEHCar": ("Vehicles", "Cars"),
        "VEHFarm": ("Vehicles", "Farm"),
        "VEHAtv": ("Vehicles", "ATV"),
        "VEHTire": ("Vehicles", "Tires"),
        "VEHDoor": ("Vehicles", "Doors"),
        "VEHHorn": ("Vehicles", "Horns"),
        "TRN": ("Vehicles", "Trains"),
        "TRNSbwy": ("Vehicles", "Subway"),
        "TRNTram": ("Vehicles", "Tram"),
        "BOAT": ("Vehicles", "Boats"),
        "BOATMotr": ("Vehicles", "Boats/Motor"),
        "BOATWash": ("Vehicles", "Boats/Wash"),
        "BOATMech": ("Vehicles", "Boats/Mechanics"),
        "BOATInt": ("Vehicles", "Boats/Interior"),
        "AERO": ("Vehicles", "Aircraft"),
        # Foley / materials
        "FOLY": ("Foley", "General"),
        "FEET": ("Foley", "Footsteps"),
        "OBJ": ("Foley", "Objects"),
        "TOOL": ("Foley", "Tools"),
        "CLOTH": ("Foley", "Cloth"),
        "WOOD": ("Foley", "Wood"),
        "METL": ("Foley", "Metal"),
        "GLAS": ("Foley", "Glass"),
        "PAPR": ("Foley", "Paper"),
        "BELL": ("Foley", "Bells"),
        "MACH": ("Foley", "Machines"),
        "MECH": ("Foley", "Mechanisms"),
        # Doors (non-vehicle)
        "DOOR": ("Doors", "General"),
        "DOORCreak": ("Doors", "Creaks"),
        "DOORGate": ("Doors", "Gates"),
        "DOORHydr": ("Doors", "Hydraulic"),
        # Design / cinematic
        "DSGN": ("Design", "General"),
        "DSGNRise": ("Design", "Risers"),
        "DSGNBoom": ("Design", "Booms/Hits"),
        "DSGNDron": ("Design", "Drones"),
        "DSGNErie": ("Design", "Eerie"),
        "DSGNBram": ("Design", "Braams"),
        "DSGNTonl": ("Design", "Tonal"),
        "DSGNSrce": ("Design", "Source"),
        "WHSH": ("Design", "Whooshes"),
        "WHOOSH": ("Design", "Whooshes"),
        # Electrical / SciFi misc
        "ELEC": ("Electrical", "General"),
        "ELECEmf": ("Electrical", "EMF/Hum"),
        "SCIMisc": ("SciFi", "Misc"),
        "SCIMech": ("SciFi", "Mechanics"),
        # Animals / creatures
        "ANML": ("Animals", "General"),
        "BIRD": ("Animals", "Birds"),
        "BIRDSong": ("Animals", "Birds/Song"),
        "BIRDPrey": ("Animals", "Birds/Prey"),
        "BIRDFowl": ("Animals", "Birds/Fowl"),
        "CREA": ("Animals", "Creatures"),
        "GRWL": ("Animals", "Growls"),
        "ROAR": ("Animals", "Roars"),
        # Voices
        "VOX": ("Voices", "General"),
        "CRWD": ("Voices", "Crowds"),
        # Gore
        "GORE": ("Gore", "General"),
        "GOREBone": ("Gore", "Bone"),
        "GOREFlsh": ("Gore", "Flesh"),
        "GORESplt": ("Gore", "Splatter"),
        # Music
        "MUSC": ("Music", "General"),
        "MUSCStngr": ("Music", "Stingers"),
    }
)



# ---------------------------------------------------------------------------
# Vendor conventions (anchored at the start of the filename stem)
#
# Only consulted when the prefix pass misses, so stems that shorten onto a
# PREFIX_RULES key (gun..., amb..., door..., ...) are not listed here.

VENDOR_RULES: Tuple[VendorRule, ...] = (
    _vendor(r"^(firearm|handgun|revolver)(?=[\s_\-\d]|$)", "Weapons", "Guns", 40),
    _vendor(r"^(rifle|pistol|shotgun|smg)(?=[\s_\-\d]|$)", "Weapons", "Guns", 40),
    _vendor(r"^(sword|blade|axe|melee)(?=[\s_\-\d]|$)", "Weapons", "Melee", 35),
    _vendor(r"^(swsh|swoosh)", "Design", "Whooshes", 40),
    _vendor(r"^(riser|rise|uplifter)(?=[\s_\-\d]|$)", "Design", "Risers", 35),
    _vendor(r"^(imp|impact|hit|boom)(?=[\s_\-\d]|$)", "Design", "Booms/Hits", 30),
    _vendor(r"^(fs|footstep|footsteps|steps?)(?=[\s_\-\d]|$)", "Foley", "Footsteps", 35),
    # "ui" is two characters, so "ui-click" or "ui 01" miss the prefix pass
    _vendor(r"^(ui|gui|hud|menu)(?=[\s\-\d]|$)", "UI", "General", 30),
    _vendor(r"^(atmo|atmos|bg)(?=[\s_\-\d]|$)", "Ambient", "Ambience", 30),
    _vendor(r"^(drizzle|downpour)", "Weather", "Rain", 35),
    _vendor(r"^lightning", "Weather", "Thunder", 35),
    _vendor(r"^(car|truck|suv)(?=[\s_\-\d]|$)", "Vehicles", "Cars", 30),
    _vendor(r"^(gate|hatch)(?=[\s_\-\d]|$)", "Doors", "General", 30),
    _vendor(r"^(vo|dialog|dialogue)(?=[\s_\-\d]|$)", "Voices", "General", 30),
    _vendor(r"^(crow|gull|owl|sparrow)s?(?=[\s_\-\d]|$)", "Animals", "Birds", 30),
    _vendor(r"^(zap|spark)(?=[\s_\-\d]|$)", "Electrical", "General", 30),
    _vendor(r"^(water|wtr|splash)(?=[\s_\-\d]|$)", "Water", "General", 30),
)


# ---------------------------------------------------------------------------
# Phrases (substring search in the normalized folder + filename text)

PHRASE_RULES: Tuple[PhraseRule, ...] = (
    PhraseRule("Foley", "Footsteps", ("footstep", "foot step", "body fall", "bodyfall"), 25),
    PhraseRule("Weapons", "Guns", ("gunshot", "gun shot", "gun fire", "gunfire", "bullet", "magazine"), 25),
    PhraseRule("Weapons", "Melee", ("sword clash", "sword swing", "blade draw", "sword"), 22),
    PhraseRule("Vehicles", "Pass By", ("pass by", "passby", "fly by", "flyby", "drive by"), 25),
    PhraseRule("Vehicles", "General", ("onboard", "gearshift", "exhaust", "engine rev", "car door"), 20),
    PhraseRule("Ambient", "Ambience", ("room tone", "roomtone", "ambience", "ambiance", "atmos", "walla"), 22),
    PhraseRule("Ambient", "Ambience/Urban", ("city traffic", "night traffic", "street traffic", "downtown"), 25),
    PhraseRule("Water", "General", ("underwater", "under water", "water drip", "splash", "stream"), 22),
    PhraseRule("Weather", "Rain", ("heavy rain", "light rain", "rain on", "rainfall"), 25),
    PhraseRule("Weather", "Thunder", ("thunder", "lightning strike"), 25),
    PhraseRule("Doors", "General", ("door slam", "door open", "door close", "door creak", "doorbell"), 25),
    PhraseRule("Foley", "Glass", ("glass break", "glass shatter", "shatter"), 22),
    PhraseRule("UI", "General", ("ui click", "button click", "button press", "menu select", "notification"), 25),
    PhraseRule("Design", "Whooshes", ("whoosh", "swoosh", "swish"), 22),
    PhraseRule("Design", "Risers", ("riser", "uplifter", "build up", "buildup"), 22),
    PhraseRule("Design", "Booms/Hits", ("cinematic hit", "trailer hit", "braam", "sub drop"), 22),
    PhraseRule("SciFi", "Misc", ("sci fi", "scifi", "spaceship", "laser", "teleport"), 22),
    PhraseRule("Electrical", "General", ("electric arc", "electric hum", "power down", "power up", "buzzing"), 22),
    PhraseRule("Animals", "Birds", ("bird song", "birdsong", "chirp", "tweet"), 22),
    PhraseRule("Animals", "General", ("dog bark", "horse neigh", "cat meow", "growl", "roar"), 20),
    PhraseRule("Voices", "Crowds", ("crowd cheer", "crowd murmur", "applause", "audience"), 22),
    PhraseRule("Magic", "General", ("magic spell", "spell cast", "enchant", "fairy dust"), 25),
)


# ---------------------------------------------------------------------------
# Word tokens (counted against the tokenizer's word-token set)

TOKEN_RULES: Tuple[TokenRule, ...] = (
    TokenRule("UI", "General", ("interface", "button", "click", "menu", "select", "beep", "alert", "confirm", "cursor", "glitch"), 14),
    TokenRule("Weapons", "Guns", ("gun", "gunshot", "reload", "rifle", "pistol", "shotgun", "cannon", "firing", "ricochet"), 15),
    TokenRule("Weapons", "General", ("weapon", "grenade", "arrow", "bow", "armor"), 12),
    TokenRule("Vehicles", "General", ("vehicle", "engine", "truck", "motor", "rpm", "horn", "onboard", "onbrd", "drive", "tire", "brake"), 13),
    TokenRule("Vehicles", "Pass By", ("passby",), 18),
    TokenRule("Vehicles", "Cars", ("car", "sedan", "suv", "hatchback"), 14),
    TokenRule("Ambient", "Ambience", ("ambience", "ambient", "roomtone", "walla", "crowd", "station", "forest", "city", "subway", "park", "night"), 12),
    TokenRule("Water", "General", ("water", "creek", "brook", "river", "wave", "splash", "drip", "ocean", "lake", "bubbles"), 13),
    TokenRule("Weather", "Rain", ("rain", "raindrops", "drizzle", "storm"), 14),
    TokenRule("Weather", "Wind", ("wind", "gust", "breeze", "howling"), 14),
    TokenRule("Doors", "General", ("door", "gate", "hatch", "creak", "latch", "doorknob"), 14),
    TokenRule("Foley", "General", ("foley", "handling", "grab", "drop", "cloth", "wood", "metal", "glass", "paper", "plastic"), 11),
    TokenRule("Foley", "Footsteps", ("footstep", "steps", "walk", "run", "jog", "gravel", "sneaker", "boots"), 13),
    TokenRule("Design", "General", ("riser", "whoosh", "hit", "boom", "cinematic", "trailer", "transition", "impact", "stinger", "drone"), 12),
    TokenRule("Voices", "General", ("voice", "dialogue", "announcement", "tannoy", "shout", "scream", "talk", "vocal", "breath"), 13),
    TokenRule("Animals", "General", ("animal", "dog", "cat", "pig", "goose", "rooster", "cow", "horse", "growl", "roar"), 13),
    TokenRule("Animals", "Birds", ("bird", "crow", "seagull", "owl", "pigeon", "sparrow"), 14),
    TokenRule("Electrical", "General", ("electric", "electrical", "emf", "hum", "interference", "arc", "discharge", "zap", "spark"), 13),
    TokenRule("Music", "General", ("music", "stinger", "jingle", "melody", "chord"), 12),
)
