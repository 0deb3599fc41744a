# services/connectivity_engine/definitions.py
# Static definitions for the soil connectivity evaluation: categories, pages and questions.

# --- Categories ---
# Order matters: it is the column order of the scores table and the tie-break order of the report.
CATEGORIES = [
    {"code": "E", "name": "Erosion", "page": 3},
    {"code": "A", "name": "Acidification", "page": 4},
    {"code": "SD", "name": "Structural Decline", "page": 5},
    {"code": "S", "name": "Salinisation", "page": 6},
    {"code": "HL", "name": "Habitat Loss / Biodiversity", "page": 7},
    {"code": "NM", "name": "Nutrient Management", "page": 8},
    {"code": "SW", "name": "Soil Water", "page": 9},
    {"code": "DC", "name": "Decarbonisation", "page": 10},
]

INTRO_PAGE = 0
LOCATION_PAGE = 2
LAST_QUESTION_PAGE = 12
FAQ_PAGE = 13
RESULTS_PAGE = 14

FAMILIAR_OPTION = {"id": "familiar", "text": "I am familiar with all these concepts."}
OTHER_OPTION = {"id": "other", "text": "Other"}

KNOWLEDGE_MESSAGE = "Please select at least one concept in the 1st question or select 'I am familiar with all these concepts.'."
THREAT_RATINGS = [
    {"id": "very-low", "text": "Very Low"},
    {"id": "low", "text": "Low"},
    {"id": "moderate", "text": "Moderate"},
    {"id": "high", "text": "High"},
    {"id": "very-high", "text": "Very High"},
    {"id": "unknown", "text": "I do not know"},
]


def _knowledge_question(prefix, concepts):
    """Knowledge question: concepts that are NEW to the respondent, plus the exclusive familiar option."""
    return {
        "key": f"{prefix}_k",
        "kind": "multi",
        "text": "Select all the concepts that are NEW to you. (Select all that apply)",
        "options": concepts + [FAMILIAR_OPTION],
        "exclusive": [FAMILIAR_OPTION["id"]],
        "message": KNOWLEDGE_MESSAGE,
    }


def _threat_rating(code, label, message):
    """A required rating plus its optional free-text comment."""
    return [
        {"key": f"threat_{code}", "kind": "single", "text": label, "options": THREAT_RATINGS, "message": message},
        {"key": f"threat_{code}_comment", "kind": "text", "text": "Comment:", "required": False, "max_length": 350},
    ]


# --- Pages ---
SURVEY_PAGES = [
    {
        "index": 0,
        "id": "intro",
        "title": "Soil Connectivity Evaluation",
        "description": "Do you manage soil/land as part of a farming business?",
        "questions": [],
    },
    {
        "index": 1,
        "id": "about-you",
        "title": "About you",
        "questions": [
            {
                "key": "role",
                "kind": "single",
                "text": "What is your role?",
                "options": [
                    {"id": "land-manager", "text": "Land Manager"},
                    {"id": "landowner", "text": "Landowner"},
                    OTHER_OPTION,
                ],
                "other_key": "other_role",
                "other_max_length": 150,
                "message": "Please answer the 1st question. If `Other`, please specify.",
            },
            {
                "key": "farm_enterprises",
                "kind": "multi",
                "text": "What enterprises do you run? (Multiple selection)",
                "options": [
                    {"id": "grain", "text": "Grain crops"},
                    {"id": "sugar", "text": "Sugar"},
                    {"id": "cotton", "text": "Cotton"},
                    {"id": "dairy", "text": "Dairy"},
                    {"id": "extensive-livestock", "text": "Extensive sheep or cattle"},
                    {"id": "feedlot", "text": "Feedlot sheep or cattle"},
                    {"id": "free-range", "text": "Free range pork or poultry"},
                    {"id": "horticulture", "text": "Horticultural field crops (this refers to potatoes, onions, carrots tomatoes, brassicas, peas, beans etc.)"},
                    {"id": "grapes", "text": "Grapes"},
                    {"id": "orchard", "text": "Orchard – fruit, nuts"},
                    OTHER_OPTION,
                ],
                "other_key": "other_farm_enterprises",
                "other_max_length": 255,
                "message": "Please answer the 2nd question. If `Other`, please specify.",
            },
            {
                "key": "perceived_threats",
                "kind": "multi",
                "text": "Across your farm(s) do you experience any of these following soil threats? (Multiple selection)",
                "required": False,
                "options": [
                    {"id": "erosion", "text": "Erosion"},
                    {"id": "acidification", "text": "Acidification"},
                    {"id": "structural-decline", "text": "Structural decline (e.g. caused by soil compaction or sodicity)"},
                    {"id": "carbon-loss", "text": "Soil carbon loss"},
                    {"id": "salinisation", "text": "Salinisation"},
                    {"id": "habitat-loss", "text": "Habitat loss/degradation of soil biology"},
                    OTHER_OPTION,
                ],
                "other_key": "other_perceived_threats",
                "other_max_length": 150,
                "message": "Please answer the 3rd question. If `Other`, please specify.",
            },
            {
                "key": "number_soil_types",
                "kind": "single",
                "text": "Different soils require different management. How many different types of soils do you manage?",
                "options": [
                    {"id": "1", "text": "1"},
                    {"id": "2-3", "text": "2-3"},
                    {"id": "4+", "text": "4+"},
                ],
                "message": "Please answer the 4th question.",
            },
            {
                "key": "main_soil_type",
                "kind": "text",
                "text": "Describe the key soil type you will refer to in this evaluation",
                "max_length": 350,
                "message": "Please answer the 5th question.",
            },
            {
                "key": "postal_code",
                "kind": "postcode",
                "text": "Enter a 4-digit Postal code:",
                "town_key": "town",
                "message": "Please answer the 6th question. If no city or town shows up, check that the postal code is correct.",
            },
        ],
    },
    {
        "index": 2,
        "id": "location",
        "title": "Where is your farm?",
        "description": "Click the map to mark your farm (optional).",
        "questions": [
            {"key": "lat", "kind": "number", "text": "Latitude", "required": False, "minimum": -90, "maximum": 90},
            {"key": "lon", "kind": "number", "text": "Longitude", "required": False, "minimum": -180, "maximum": 180},
        ],
    },
    {
        "index": 3,
        "id": "erosion",
        "title": "Erosion",
        "category": "E",
        "questions": [
            _knowledge_question("e", [
                {"id": "soil-cover", "text": "Practices that increase soil cover by more than 50% reduce the risk of soil erosion."},
                {"id": "windbreaks", "text": "Wind erosion can be reduced by planting windbreaks at 90 degrees to the prevailing wind."},
                {"id": "landscape-position", "text": "The severity of water erosion is impacted by position in the landscape and can occur below the surface."},
                {"id": "shear-test", "text": "A shear test is used to measure soil strength, a soil with high shear is less prone to erosion."},
            ]),
            {
                "key": "e_ac",
                "kind": "single",
                "text": "For your soils, which statement best describes your approach to soil erosion? (Choose only one)",
                "options": [
                    {"id": "not-considered", "text": "Soil erosion is not considered in my management practices."},
                    {"id": "cover-when-possible", "text": "Practices that maintain soil cover are used when possible."},
                    {"id": "cover-priority", "text": "Practices that maintain soil cover are a priority."},
                    {"id": "topography-mapping", "text": "We combine information on soil chemical and physical characteristics with topography to identify and manage areas prone to soil erosion."},
                ],
                "message": "Please answer 2nd question.",
            },
            {
                "key": "e_at",
                "kind": "single",
                "text": "Which statement best describes your opinion on managing soil erosion? (Choose only one)",
                "options": [
                    {"id": "not-needed", "text": "Farming practices do not need to be considered in relation to soil erosion."},
                    {"id": "prohibitive", "text": "I feel that the expense and complexity of erosion control makes it prohibitive."},
                    {"id": "minimise", "text": "I aim to use production and environmental practices that minimise erosion."},
                    {"id": "topsoil-asset", "text": "Our topsoil is our most valuable asset, and we must all work to minimise its loss."},
                ],
                "message": "Please answer 3rd question.",
            },
            {
                "key": "legislated_erosion",
                "kind": "text",
                "text": "Are you implementing any management practices to prevent soil erosion because it is legislated by your state or federal government?",
                "max_length": 350,
                "message": "Please answer 4th question.",
            },
        ],
    },
    {
        "index": 4,
        "id": "acidification",
        "title": "Acidification",
        "category": "A",
        "questions": [
            _knowledge_question("a", [
                {"id": "ph-threshold", "text": "A soil with a pH less than 5.5 is considered acidic."},
                {"id": "nutrient-access", "text": "Soil pH influences a plant's ability to access nutrients & may cause a deficiency or toxicity."},
                {"id": "alkaline-acidification", "text": "Farm practices can cause soil acidification even in alkaline soils."},
                {"id": "buffering-capacity", "text": "The buffering capacity of a soil indicates the ability of the soil to resist pH change."},
            ]),
            {
                "key": "a_ac",
                "kind": "single",
                "text": "For your soils, which statement best describes your approach to soil acidification? (Choose only one)",
                "options": [
                    {"id": "not-measured", "text": "I have not measured soil pH."},
                    {"id": "occasional-test", "text": "I have occasionally tested soil pH, but this knowledge rarely impacts my farm practices."},
                    {"id": "regular-monitoring", "text": "Soil pH is regularly monitored, and amendments are added if cost effective."},
                    {"id": "zoned-sampling", "text": "In my soil testing plan, I geolocate soil pH sampling points within zones and variably apply amendments where required."},
                ],
                "message": "Please answer 2nd question.",
            },
            {
                "key": "a_at",
                "kind": "single",
                "text": "Which statement best describes your opinion on managing soil acidification (Choose only one)",
                "options": [
                    {"id": "not-needed", "text": "I do not need to know the pH of my soil."},
                    {"id": "rarely-considered", "text": "Soil acidification is rarely considered when making management decisions."},
                    {"id": "if-cost-effective", "text": "Practices that minimise soil acidification are prioritised if cost effective."},
                    {"id": "everyone-monitors", "text": "Everyone should monitor the pH of their surface and subsurface soil and manage acidification."},
                ],
                "message": "Please answer 3rd question.",
            },
            {
                "key": "a_ph",
                "kind": "single",
                "text": "What is the most common pH of topsoil on your soils?",
                "options": [
                    {"id": "acidic", "text": "pH less than 5.5"},
                    {"id": "neutral", "text": "pH 5.6 to 7.5"},
                    {"id": "alkaline", "text": "Greater than pH 7.6"},
                    {"id": "unknown", "text": "Do not know"},
                ],
                "message": "Please answer 4th question.",
            },
        ],
    },
    {
        "index": 5,
        "id": "structural-decline",
        "title": "Structural Decline",
        "category": "SD",
        "questions": [
            _knowledge_question("sd", [
                {"id": "pore-space", "text": "Poorly structured soil lacks pores to the hold air and water required for roots and soil organisms to flourish."},
                {"id": "sodicity", "text": "When the exchangeable sodium percent (ESP) is greater than 6.0, a soil is considered sodic and soil structure declines."},
                {"id": "slake-test", "text": "Soil structure is quickly assessed  using a slake test."},
                {"id": "machinery-compaction", "text": "Irrespective of tyre footprint, the weight and engine vibrations of large farm machinery compacts soil reducing soil functions."},
            ]),
            {
                "key": "sd_ac",
                "kind": "single",
                "text": "For your soils, which statement best describes your approach to managing soil structure? (Choose only one)",
                "options": [
                    {"id": "not-considered", "text": "Changes in soil structure are not considered."},
                    {"id": "root-indicator", "text": "Poor and misshapen root growth is used as an indicator of subsurface compaction (hardpan)."},
                    {"id": "minimise-compaction", "text": "Grazing and machinery practices are designed to minimise soil compaction."},
                    {"id": "assessed", "text": "I have assessed soil structure on my soil by digging soil pits or sending for soil testing to a laboratory."},
                ],
                "message": "Please answer 2nd question.",
            },
            {
                "key": "sd_at",
                "kind": "single",
                "text": "Which statement best describes your opinion on managing soil structure (Choose only one)",
                "options": [
                    {"id": "not-recorded", "text": "Changes in soil structure are not measured and recorded."},
                    {"id": "prevent-compaction", "text": "My management is about preventing soil compaction rather than improving soil structure."},
                    {"id": "long-term", "text": "Maintaining and improving soil structure is built into our long-term management approaches."},
                    {"id": "central", "text": "Soil structural decline has the greatest long-term impact on the viability of farming and its prevention should be central to all farmers management practices."},
                ],
                "message": "Please answer 3rd question.",
            },
            {
                "key": "sd_val",
                "kind": "multi",
                "text": "Select the practices you use or have used to improve soil structure? (Select all appropriate)",
                "options": [
                    {"id": "none", "text": "None"},
                    {"id": "clay-or-sand", "text": "Additions of clay or sand"},
                    {"id": "drainage", "text": "Drainage"},
                    {"id": "deep-ripping", "text": "Deep ripping"},
                    {"id": "minimal-tillage", "text": "Minimal tillage"},
                    {"id": "rotational-grazing", "text": "Rotational grazing"},
                    {"id": "gypsum", "text": "Addition of gypsum"},
                    {"id": "stocking-rates", "text": "Appropriate stocking rates"},
                    {"id": "organic-matter", "text": "Addition of organic matter"},
                    {"id": "controlled-traffic", "text": "Controlled traffic/ raise beds"},
                    OTHER_OPTION,
                ],
                "exclusive": ["none"],
                "other_key": "other_sd_val",
                "other_max_length": 350,
                "message": "Please answer 4th question. If `Other` selected, please specify.",
            },
        ],
    },
    {
        "index": 6,
        "id": "salinisation",
        "title": "Salinisation",
        "category": "S",
        "questions": [
            _knowledge_question("s", [
                {"id": "salt-accumulation", "text": "The accumulation of sodium, calcium, magnesium and/or potassium in the soil causes salinity."},
                {"id": "rootzone-salinisation", "text": "Applications of saline irrigation water or heavy rates of fertiliser, lime or gypsum can cause salinisation in the rootzone."},
                {"id": "water-absorption", "text": "Plant growth in saline soil is limited by reduced water absorption by roots and increased concentration of sodium chloride in the plant."},
                {"id": "sensor-accuracy", "text": "Increasing soil salinity can negatively impact the accuracy of soil moisture sensors."},
            ]),
            {
                "key": "s_ac",
                "kind": "single",
                "text": "For your soils, which statement best describes your approach to soil salinisation? (Choose only one)",
                "options": [
                    {"id": "unaware", "text": "I  do not know if salinity is a problem on my farm."},
                    {"id": "known-problem-only", "text": "I only look for salinity if it is a known problem in my area."},
                    {"id": "perennials", "text": "We grow a range of perennial crops/pastures especially in areas where salinity is a known problem."},
                    {"id": "monitoring", "text": "We monitor salts in irrigation water and/or use technology including electromagnetic and biomass maps to locate sampling points to monitor salinisation."},
                ],
                "message": "Please answer 2nd question.",
            },
            {
                "key": "s_at",
                "kind": "single",
                "text": "Which statement best describes your opinion on managing soil salinisation (Choose only one)",
                "options": [
                    {"id": "not-limiter", "text": "I do not consider salinity as a production limiter."},
                    {"id": "concerned", "text": "I am concerned that my farming practices will cause the soil to become saline but do not know the solution."},
                    {"id": "monitor-with-production", "text": "As my production increases, I pay more attention to monitoring changes in soil salinity."},
                    {"id": "community-programs", "text": "I engage with community wide programs to minimise and manage salinisation in our catchment."},
                ],
                "message": "Please answer 3rd question.",
            },
            {
                "key": "s_val",
                "kind": "single",
                "text": "What type of salinity is a problem in your soil? (Choose only one)",
                "options": [
                    {"id": "none", "text": "None"},
                    {"id": "dryland", "text": "Dryland salinity"},
                    {"id": "irrigation-water", "text": "Saline irrigation water"},
                    {"id": "marine-ingress", "text": "Saline/ marine water ingress"},
                    {"id": "subsurface", "text": "Salinity in the subsurface"},
                    {"id": "unknown", "text": "I do not know"},
                ],
                "message": "Please answer 4th question.",
            },
        ],
    },
    {
        "index": 7,
        "id": "habitat-loss",
        "title": "Habitat Loss / Biodiversity",
        "category": "HL",
        "questions": [
            _knowledge_question("hl", [
                {"id": "soil-functions", "text": "Soil biota plays an important role in  soil functions including structural improvement, organic matter turnover and pollutant degradation."},
                {"id": "acidic-fungi", "text": "More acidic soils favour fungal over bacterial diversity, and support less diverse microbial communities."},
                {"id": "mixed-inputs", "text": "Long-term experiments show that a combination of organic and inorganic nutrient inputs produces more sustainable crop yields than either kind alone."},
                {"id": "mycorrhiza", "text": "The symbiotic fungi mycorrhiza is a fundamental part of plant nutrition: as much as 80% of phosphorus and up to 20% of nitrogen can be transferred to plants by these fungi."},
            ]),
            {
                "key": "hl_ac",
                "kind": "single",
                "text": "For your soils, which statement best describes your approach to maintaining soil biodiversity? (Choose only one)",
                "options": [
                    {"id": "root-disease", "text": "I only think about soil organisms in relation to root disease."},
                    {"id": "need-information", "text": "I would like to implement management practices that increases underground biodiversity but need more information."},
                    {"id": "build-organic-matter", "text": "I use practices to build organic matter in my soil to help improve soil health."},
                    {"id": "work-with-farmers", "text": "I work with other farmers to learn, test and implement best practice to promote healthy soil biota."},
                ],
                "message": "Please answer 2nd question.",
            },
            {
                "key": "hl_at",
                "kind": "single",
                "text": "Which statement best describes your opinion on managing soil biodiversity? (Choose only one)",
                "options": [
                    {"id": "no-need", "text": "There is no need to monitor or improve the biodiversity on my farm."},
                    {"id": "productivity-focus", "text": "I am aware my practices may be detrimental to soil biota, but maximising productivity is my focus."},
                    {"id": "in-sympathy", "text": "I work in sympathy with soil biota to reduce soil degradation and support productivity."},
                    {"id": "imperative", "text": "It is imperative that we continue to improve understanding and how to work synergistically with below ground biota."},
                ],
                "message": "Please answer 3rd question.",
            },
            {
                "key": "hl_val",
                "kind": "multi",
                "text": "Which practices do you use to maintain or increase underground biodiversity in your soils? (Select all appropriate).",
                "options": [
                    {"id": "no-practices", "text": "I do not use any practices to support soil biodiversity"},
                    {"id": "minimise-pesticides", "text": "Minimise soil applied pesticides"},
                    {"id": "clay", "text": "Additions of clay"},
                    {"id": "organic-matter", "text": "Additions of organic matter"},
                    {"id": "soil-cover", "text": "Maintain soil cover or/and retain stubble"},
                    {"id": "inoculate-pulses", "text": "Inoculate pulses"},
                    {"id": "rotations", "text": "Use crop and/or pasture rotations"},
                    OTHER_OPTION,
                ],
                "exclusive": ["no-practices"],
                "other_key": "other_hl_val",
                "other_max_length": 350,
                "message": "Please answer 4th question. If `Other` selected, please specify.",
            },
            {
                "key": "hl_val2",
                "kind": "multi",
                "text": "Which practices do you use to maintain or increase above-ground biodiversity in your soils? (Select all appropriate).",
                "options": [
                    {"id": "no-practices", "text": "I do not use any practices to support aboveground biodiversity"},
                    {"id": "cover-crops", "text": "Grow cover crops"},
                    {"id": "plant-native", "text": "Plant native vegetation"},
                    {"id": "pollinators", "text": "Planting for pollinators"},
                    {"id": "maintain-native", "text": "Maintain existing native vegetation"},
                    OTHER_OPTION,
                ],
                "exclusive": ["no-practices"],
                "other_key": "other_hl_val2",
                "other_max_length": 350,
                "message": "Please answer 5th question. If `Other` selected, please specify.",
            },
        ],
    },
    {
        "index": 8,
        "id": "nutrient-management",
        "title": "Nutrient Management",
        "category": "NM",
        "questions": [
            _knowledge_question("nm", [
                {"id": "macro-nutrients", "text": "Nitrogen, phosphorus and potassium (N, P, K) are not the only macro nutrients required by plants."},
                {"id": "root-limits", "text": "Factors that limit root growth, such as toxic layers or disease, reduce nutrient uptake."},
                {"id": "critical-range", "text": "The critical range for nutrient concentrations varies with soil type."},
                {"id": "nutrient-cycling", "text": "Nutrients applied to soil are rarely taken-up directly by plants but have to be cycled or transported by soil organisms."},
            ]),
            {
                "key": "nm_ac",
                "kind": "single",
                "text": "For your soils, which statement best describes how you manage soil nutrients? (Choose only one)",
                "options": [
                    {"id": "fixed-rates", "text": "If nutrients are applied, rates are not modified by season."},
                    {"id": "advisor-rates", "text": "Fertiliser is only applied based on agronomist or supplier recommendations."},
                    {"id": "seasonal-rates", "text": "Fertiliser rates and timings are modified by season, production objective and soil type."},
                    {"id": "precision", "text": "The latest technologies are used to measure and apply fertiliser in order to minimise loss to the environment."},
                ],
                "message": "Please answer 2nd question.",
            },
            {
                "key": "nm_at",
                "kind": "single",
                "text": "Which statement best describes your opinion on managing soil nutrients? (Choose only one)",
                "options": [
                    {"id": "manure-legumes", "text": "I do not apply fertiliser but rely on animal manure and/or leguminous plants."},
                    {"id": "fertiliser-first", "text": "Fertiliser is applied because it is the most important source of crop nutrients."},
                    {"id": "biology-and-moisture", "text": "I consider soil biology and moisture as important for crop nutrition as the addition of fertiliser or manure."},
                    {"id": "feed-soil-biota", "text": "Our nutrient inputs are designed to feed the soil biota to support soil health and nutrient cycling to produce healthy crops and animals."},
                ],
                "message": "Please answer 3rd question.",
            },
            {
                "key": "nm_val",
                "kind": "multi",
                "text": "Which forms of nutrients do you use?",
                "options": [
                    {"id": "inorganic", "text": "Inorganic"},
                    {"id": "organic", "text": "Organic"},
                    {"id": "synthetic", "text": "Synthetic fertiliser"},
                    {"id": "none", "text": "None"},
                ],
                "exclusive": ["none"],
                "message": "Please answer 4th question.",
            },
            {
                "key": "nm_val2",
                "kind": "single",
                "text": "Which best describes your system?",
                "options": [
                    {"id": "high-input", "text": "High input"},
                    {"id": "low-input", "text": "Low input"},
                ],
                "message": "Please answer 5th question.",
            },
        ],
    },
    {
        "index": 9,
        "id": "soil-water",
        "title": "Soil Water",
        "category": "SW",
        "questions": [
            _knowledge_question("sw", [
                {"id": "plant-available-water", "text": "Plant available water plays a crucial role in determining potential  yield."},
                {"id": "storage-factors", "text": "Soil factors including texture, structure and subsoil constraints influence soil water storage and water uptake by roots."},
                {"id": "saturated-soil", "text": "A saturated soil is more vulnerable to soil compaction and water erosion."},
                {"id": "climate-models", "text": "Under multiple future climate models Australia is predicted to suffer loss of soil moisture between 6 and 15% depending on region between 2030 and 2039."},
            ]),
            {
                "key": "sw_ac",
                "kind": "single",
                "text": "For your soils, which statement best describes how you manage soil water? (Choose only one)",
                "options": [
                    {"id": "not-managed", "text": "I do not try to manage my soil water."},
                    {"id": "rainfall-forecasts", "text": "I plan operations based long-term rainfall forecasts as well my knowledge of rain patterns."},
                    {"id": "moisture-sensors", "text": "I have soil moisture sensors and/or on-farm weather stations and plan operations based on my soil moisture and local rainfall forecast models."},
                    {"id": "water-use-efficiency", "text": "Water is a limited resource, and my management plans aim to maximise water use efficiency and minimise run-off."},
                ],
                "message": "Please answer 2nd question.",
            },
            {
                "key": "sw_at",
                "kind": "single",
                "text": "Which statement best describes your opinion on managing soil water? (Choose only one)",
                "options": [
                    {"id": "no-interest", "text": "I have no interest in the amount of water stored in my soil."},
                    {"id": "too-expensive", "text": "Implementing practices to manage water efficiency are difficult or too expensive."},
                    {"id": "confident", "text": "I feel confident implementing practices to manage water in order to improve water use efficiency for production."},
                    {"id": "watershed", "text": "Ensuring the long-term viability and water quality of my watershed is important and I want to use the latest technology to monitor and manage change."},
                ],
                "message": "Please answer 3rd question.",
            },
            {
                "key": "sw_val",
                "kind": "single",
                "text": "Which is a greater problem to you? (Select one).",
                "options": [
                    {"id": "too-wet", "text": "Soil being too wet"},
                    {"id": "too-dry", "text": "Soil being too dry"},
                    {"id": "neither", "text": "Neither"},
                    {"id": "both", "text": "Both"},
                    {"id": "not-sure", "text": "Not sure"},
                ],
                "message": "Please answer 4th question.",
            },
            {
                "key": "sw_val2",
                "kind": "single",
                "text": "Which system best describes your system? (Select one).",
                "options": [
                    {"id": "rainfed", "text": "Rainfed"},
                    {"id": "irrigated", "text": "Irrigated"},
                    {"id": "both", "text": "Both"},
                ],
                "message": "Please answer 5th question.",
            },
        ],
    },
    {
        "index": 10,
        "id": "decarbonisation",
        "title": "Decarbonisation",
        "category": "DC",
        "questions": [
            _knowledge_question("dc", [
                {"id": "landscape-carbon", "text": "Topography, drainage, and farm practices have an impact on the amount of carbon in soil at the landscape level."},
                {"id": "root-carbon", "text": "Carbon from decaying roots and fungi are more likely to be retained in soil organic matter than an equivalent mass of aboveground litter after one year."},
                {"id": "nutrient-limits", "text": "Low levels of nutrients such as nitrogen can lead to poor carbon storage."},
                {"id": "deep-carbon", "text": "Usually, more carbon is found between 30 cm and 200 cm below the surface than that of the top 30 cm, with farming practices affecting these deeper levels over decades."},
            ]),
            {
                "key": "dc_ac",
                "kind": "single",
                "text": "For your soils, which statement best describes your approach to monitoring soil carbon? (Choose only one)",
                "options": [
                    {"id": "not-priority", "text": "Managing soil carbon is not a priority."},
                    {"id": "incidental", "text": "Management practices are not designed particularly to improve soil carbon, but hopefully provide carbon benefits."},
                    {"id": "in-plans", "text": "Practices that might improve soil carbon are included in management plans."},
                    {"id": "high-priority", "text": "Measuring and improving soil carbon are high priorities."},
                ],
                "message": "Please answer 2nd question.",
            },
            {
                "key": "dc_at",
                "kind": "single",
                "text": "Which statement best describes your opinion on managing soil carbon (Choose only one)",
                "options": [
                    {"id": "no-value", "text": "I don't see the value or benefits of trying to change my soil carbon percentage."},
                    {"id": "too-expensive", "text": "Implementing practices to increase soil carbon are difficult or too expensive."},
                    {"id": "confident", "text": "I feel confident implementing practices to increase soil carbon to improve production."},
                    {"id": "long-term-security", "text": "The long-term security of my soil and soil security in Australia is dependent on the carbon in it."},
                ],
                "message": "Please answer 3rd question.",
            },
            {
                "key": "dc_val",
                "kind": "multi",
                "text": "Select the practices you use to maintain or increase carbon in your soil? (Select all appropriate).",
                "options": [
                    {"id": "none", "text": "None"},
                    {"id": "stubble-or-grazing", "text": "Stubble retention / rotational grazing"},
                    {"id": "minimal-tillage", "text": "Minimal tillage"},
                    {"id": "organic-inputs", "text": "Additions of organic manures/fertiliser"},
                    {"id": "clay", "text": "Additions of clay"},
                    {"id": "cover-crops", "text": "Planting cover crops"},
                    OTHER_OPTION,
                ],
                "exclusive": ["none"],
                "other_key": "other_dc_val",
                "other_max_length": 350,
                "message": "Please answer 4th question. If `Other` selected, please specify.",
            },
            {
                "key": "dc_val2",
                "kind": "single",
                "text": "Which statement best describes your current attitude towards carbon credits market schemes?",
                "options": [
                    {"id": "no-value", "text": "I don’t see any value in carbon credits market schemes for my business."},
                    {"id": "unclear", "text": "I’m not clear on what carbon market options might be suitable for my business."},
                    {"id": "not-positioned", "text": "I can see benefits in carbon markets, but my business is not well positioned to take advantage of these."},
                    {"id": "investigating", "text": "I can see benefits in carbon markets and plan to investigate the available opportunities."},
                    {"id": "trading-beneficial", "text": "I participate in carbon credit trading and find it beneficial."},
                    {"id": "trading-no-benefit", "text": "I participate in carbon credit trading but have not seen any benefits yet."},
                    {"id": "trading-negative", "text": "I participate in carbon credit trading and it’s been a negative experience for me."},
                ],
                "message": "Please answer 5th question.",
            },
            {
                "key": "dc_comment",
                "kind": "text",
                "text": "Do you have anything to add?",
                "required": False,
                "max_length": 500,
            },
        ],
    },
    {
        "index": 11,
        "id": "threat-ratings",
        "title": "How important are these threats on your farm?",
        "stamp": "end_time",
        "questions": [
            *_threat_rating("e", "Soil erosion", "Please rate importance of soil erosion threat."),
            *_threat_rating("a", "Soil acidification", "Please rate importance of soil acidification threat."),
            *_threat_rating("sd", "Soil structural decline", "Please rate importance of soil structural decline threat."),
            *_threat_rating("dc", "Soil decarbonisation", "Please rate importance of decarbonisation threat."),
            *_threat_rating("s", "Soil salinisation", "Please rate importance of salinisation threat."),
            *_threat_rating("hl", "Loss of soil biodiversity", "Please rate importance of soil biodiversity loss threat."),
        ],
    },
    {
        "index": 12,
        "id": "about-your-farm",
        "title": "About you and your farm",
        "stamp": "submission_time",
        "questions": [
            {
                "key": "age",
                "kind": "single",
                "text": "How old are you?",
                "options": [{"id": age, "text": age} for age in ("15-19", "20-24", "25-34", "35-44", "45-54", "55-64", "65-74", "75+")],
                "message": "Please answer 1st question.",
            },
            {
                "key": "education_level",
                "kind": "single",
                "text": "What is the highest level of education you have completed?",
                "options": [
                    {"id": "year-10", "text": "Year 10 or below (No formal education qualification)"},
                    {"id": "year-12", "text": "Year 12 or equivalent (High school completion)"},
                    {"id": "certificate", "text": "Certificate II, III, or IV (Vocational qualifications)"},
                    {"id": "diploma", "text": "Diploma or Advanced Diploma (Higher vocational qualifications)"},
                    {"id": "bachelor", "text": "Bachelor's Degree (e.g., Bachelor of Arts, Bachelor of Science)"},
                    {"id": "postgraduate", "text": "Postgraduate Diploma or Certificate (e.g., Graduate Diploma, Graduate Certificate)"},
                    {"id": "masters", "text": "Master's Degree (e.g., Master of Arts, Master of Science)"},
                    {"id": "doctoral", "text": "Doctoral Degree (e.g., Ph.D., Doctor of Medicine)"},
                ],
                "message": "Please answer 2nd question.",
            },
            {
                "key": "land_type",
                "kind": "multi",
                "text": "The soil you have been responding about, is it: (select as many as appropriate):",
                "options": [
                    {"id": "freehold", "text": "Freehold"},
                    {"id": "pastoral-lease", "text": "Pastoral perpetual lease"},
                    {"id": "perpetual-lease", "text": "Perpetual lease"},
                    {"id": "other-lease", "text": "Other lease"},
                    {"id": "conservation-reserve", "text": "Nature conservation reserve"},
                    {"id": "crown-land", "text": "Crown land including multiple use public forest"},
                    OTHER_OPTION,
                ],
                "other_key": "other_land_type",
                "other_max_length": 225,
                "message": "Please answer 3rd question. If `Other` selected, please specify.",
            },
            {
                "key": "land_area",
                "kind": "number",
                "text": "How many hectares is your farm?",
                "minimum": 1,
                "maximum": 100000,
                "message": "Please answer 4th question.",
            },
            {
                "key": "word_familiarity",
                "kind": "multi",
                "text": "Click on the terms that are familiar to you (Choose all that apply; can be left blank):",
                "required": False,
                "options": [
                    {"id": term.lower().replace(" ", "-").replace("'", ""), "text": term}
                    for term in (
                        "Soil degradation", "Acidification", "Structural decline", "Soil aggregates", "Soil compaction",
                        "Decarbonisation", "Carbon storage", "Salinisation", "Sodicity", "Ecosystem services",
                        "Soil biodiversity", "Soil ecology", "4 R's of fertilizer management",
                        "Water use efficiency", "Eutrophication", "Fertigation",
                    )
                ],
            },
        ],
    },
]

# Back navigation from these pages skips the optional location page.
BACK_TARGETS = {3: 1}
