"""Italian regions and their provinces, used to validate haulier registrations."""

from typing import Dict, List

REGION_PROVINCES: Dict[str, List[str]] = {
    "Abruzzo": ["Chieti", "L'Aquila", "Pescara", "Teramo"],
    "Basilicata": ["Matera", "Potenza"],
    "Calabria": ["Catanzaro", "Cosenza", "Crotone", "Reggio Calabria", "Vibo Valentia"],
    "Campania": ["Avellino", "Benevento", "Caserta", "Napoli", "Salerno"],
    "Emilia-Romagna": [
        "Bologna",
        "Ferrara",
        "Forlì-Cesena",
        "Modena",
        "Parma",
        "Piacenza",
        "Ravenna",
        "Reggio Emilia",
        "Rimini",
    ],
    "Friuli-Venezia Giulia": ["Gorizia", "Pordenone", "Trieste", "Udine"],
    "Lazio": ["Frosinone", "Latina", "Rieti", "Roma", "Viterbo"],
    "Liguria": ["Genova", "Imperia", "La Spezia", "Savona"],
    "Lombardia": [
        "Bergamo",
        "Brescia",
        "Como",
        "Cremona",
        "Lecco",
        "Lodi",
        "Mantova",
        "Milano",
        "Monza e Brianza",
        "Pavia",
        "Sondrio",
        "Varese",
    ],
    "Marche": ["Ancona", "Ascoli Piceno", "Fermo", "Macerata", "Pesaro e Urbino"],
    "Molise": ["Campobasso", "Isernia"],
    "Piemonte": [
        "Alessandria",
        "Asti",
        "Biella",
        "Cuneo",
        "Novara",
        "Torino",
        "Verbano-Cusio-Ossola",
        "Vercelli",
    ],
    "Puglia": ["Bari", "Barletta-Andria-Trani", "Brindisi", "Foggia", "Lecce", "Taranto"],
    "Sardegna": [
        "Cagliari",
        "Carbonia-Iglesias",
        "Medio Campidano",
        "Nuoro",
        "Ogliastra",
        "Olbia-Tempio",
        "Oristano",
        "Sassari",
    ],
    "Sicilia": [
        "Agrigento",
        "Caltanissetta",
        "Catania",
        "Enna",
        "Messina",
        "Palermo",
        "Ragusa",
        "Siracusa",
        "Trapani",
    ],
    "Toscana": [
        "Arezzo",
        "Firenze",
        "Grosseto",
        "Livorno",
        "Lucca",
        "Massa-Carrara",
        "Pisa",
        "Pistoia",
        "Prato",
        "Siena",
    ],
    "Trentino-Alto Adige": ["Bolzano", "Trento"],
    "Umbria": ["Perugia", "Terni"],
    "Valle d'Aosta": ["Aosta"],
    "Veneto": ["Belluno", "Padova", "Rovigo", "Treviso", "Venezia", "Verona", "Vicenza"],
}


def provinces_for(region: str) -> List[str]:
    """Provinces of a region, empty for an unknown region."""
    return REGION_PROVINCES.get(region, [])


def validate_province(region: str, province: str) -> List[str]:
    """Return a list of problems with a region/province pair (empty when valid)."""
    if region not in REGION_PROVINCES:
        return [f"Unknown region '{region}'"]
    if province not in REGION_PROVINCES[region]:
        return [f"Province '{province}' does not belong to region '{region}'"]
    return []
