"""Fixed catalogs used by the identity and classification validators.

Unlike the statutory tables in ``config.settings`` these values are part of
the identifier formats themselves and do not change between valuations.
"""

# Four-letter combinations the SAT and RENAPO never issue as name blocks.
PROHIBITED_WORDS = frozenset(
    {
        "BUEI", "BUEY", "CACA", "CACO", "CAGA", "CAGO", "CAKA", "CAKO",
        "COGE", "COGI", "COJA", "COJE", "COJI", "COJO", "COLA", "CULO",
        "FALO", "FETO", "GETA", "GUEI", "GUEY", "JETA", "JOTO", "KACA",
        "KACO", "KAGA", "KAGO", "KAKA", "KAKO", "KOGE", "KOGI", "KOJA",
        "KOJE", "KOJI", "KOJO", "KOLA", "KULO", "LILO", "LOCA", "LOCO",
        "LOKA", "LOKO", "MAME", "MAMO", "MEAR", "MEAS", "MEON", "MIAR",
        "MION", "MOCO", "MOKO", "MULA", "MULO", "NACA", "NACO", "PEDA",
        "PEDO", "PENE", "PIPI", "PITO", "POPO", "PUTA", "PUTO", "QULO",
        "RATA", "ROBA", "ROBE", "ROBO", "RUIN", "SENO", "TETA", "VACA",
        "VAGA", "VAGO", "VAKA", "VUEI", "VUEY", "WUEI", "WUEY",
    }
)

# Two-letter state codes used in position 12-13 of a CURP; NE is foreign-born.
CURP_STATE_CODES = frozenset(
    {
        "AS", "BC", "BS", "CC", "CL", "CM", "CS", "CH", "DF", "DG", "GT",
        "GR", "HG", "JC", "MC", "MN", "MS", "NT", "NL", "OC", "PL", "QT",
        "QR", "SP", "SL", "SR", "TC", "TS", "TL", "VZ", "YN", "ZS", "NE",
    }
)

# Template fragments that show up when an ID column was filled with dummies.
SUSPICIOUS_TAX_ID_FRAGMENTS = ("XXXX", "TEST", "TEMP", "000000", "000101", "010101")

SEQUENTIAL_IMSS_PATTERNS = frozenset({"000000", "999999", "123456", "654321"})

VALID_EMPLOYEE_TYPES = frozenset(
    {
        "CONFIDENCIAL", "CONFIANZA", "SINDICALIZADO", "EJECUTIVO",
        "OPERATIVO", "ADMINISTRATIVO", "VENDEDOR", "SUPERVISOR",
    }
)

VALID_CONTRACT_TYPES = frozenset(
    {"PERMANENTE", "EVENTUAL", "TEMPORAL", "DETERMINADO", "INDETERMINADO"}
)

VALID_TERMINATION_CAUSES = frozenset(
    {
        "RENUNCIA", "RENUNCIA_VOLUNTARIA", "RETIRO_VOLUNTARIO",
        "DESPIDO", "TERMINACION_SIN_CAUSA", "DESPIDO_PROCEDENTE", "RESCISION",
        "JUBILACION", "PENSION", "RETIRO_EDAD",
        "DEFUNCION", "FALLECIMIENTO", "MUERTE",
        "INVALIDEZ", "INCAPACIDAD_PERMANENTE", "DISCAPACIDAD",
        "VENCIMIENTO_CONTRATO", "MUTUO_ACUERDO",
    }
)

# Generational cohorts by birth year, inclusive bounds.
GENERATIONS = (
    ("SILENT", 1928, 1945),
    ("BABY_BOOMER", 1946, 1964),
    ("GEN_X", 1965, 1980),
    ("MILLENNIAL", 1981, 1996),
    ("GEN_Z", 1997, 2012),
)

COMMON_MALE_NAMES = frozenset(
    {
        "JOSE", "LUIS", "JUAN", "MIGUEL", "CARLOS", "ANTONIO", "FRANCISCO",
        "ALEJANDRO", "RAFAEL", "MANUEL", "FERNANDO", "PEDRO", "RICARDO",
        "SERGIO", "ALBERTO", "DANIEL", "ARTURO", "ROBERTO", "EDUARDO",
        "JORGE", "RAUL", "OSCAR", "GERARDO", "VICTOR", "MARIO", "DAVID",
        "JESUS", "IGNACIO", "GUILLERMO",
    }
)

COMMON_FEMALE_NAMES = frozenset(
    {
        "MARIA", "GUADALUPE", "JUANA", "ANTONIA", "MARGARITA", "DOLORES",
        "ROSA", "FRANCISCA", "ELENA", "TERESA", "MARTHA", "LETICIA",
        "JOSEFINA", "CARMEN", "ANA", "LUCIA", "GLORIA", "ESPERANZA",
        "CRISTINA", "LAURA", "ADRIANA", "GABRIELA", "ALEJANDRA", "PATRICIA",
        "ELIZABETH", "CLAUDIA", "VERONICA", "SANDRA", "SILVIA", "NANCY",
        "ANGELICA", "NORMA", "YOLANDA",
    }
)

PLACEHOLDER_NAMES = frozenset(
    {"TEST", "PRUEBA", "NOMBRE", "EMPLEADO", "NA", "N/A", "SIN NOMBRE", "XXX", "DESCONOCIDO"}
)

PLACEHOLDER_POSITIONS = frozenset(
    {"XXX", "AAA", "TEST", "PRUEBA", "SIN", "NO", "NA", "N/A", "SIN PUESTO", "PENDIENTE", "PUESTO"}
)
