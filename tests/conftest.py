"""
Shared fixtures: Blue Button records in the shape the converter reads.
"""

import copy
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest


DEMOGRAPHICS = {
    "name": {"prefix": "Mr.", "first": "Isaac", "middle": ["Isidore"], "last": "Jones"},
    "dob": {"point": {"date": "1975-05-01T00:00:00Z", "precision": "day"}},
    "gender": "Male",
    "identifiers": [
        {"identifier": "2.16.840.1.113883.19.5.99999.2", "extension": "998991"},
    ],
    "marital_status": "Married",
    "addresses": [{
        "street_lines": ["1357 Amber Drive"],
        "city": "Beaverton",
        "state": "OR",
        "zip": "97867",
        "country": "US",
        "use": "primary home",
    }],
    "phone": [{"number": "(816)276-6909", "type": "primary home"}],
    "race": "White",
    "ethnicity": "Not Hispanic or Latino",
    "languages": [{"language": "en", "preferred": True}],
}

ALLERGIES = [
    {
        "identifiers": [{"identifier": "36e3e930-7b14-11db-9fe1-0800200c9a66"}],
        "date_time": {"low": {"date": "2007-05-01T00:00:00Z", "precision": "day"}},
        "observation": {
            "identifiers": [{"identifier": "4adc1020-7b14-11db-9fe1-0800200c9a66"}],
            "allergen": {"name": "ALLERGENIC EXTRACT, PENICILLIN", "code": "314422",
                         "code_system_name": "RXNORM"},
            "intolerance": {"name": "Propensity to adverse reactions to drug",
                            "code": "419511003", "code_system_name": "SNOMED CT"},
            "date_time": {"low": {"date": "2007-05-01T00:00:00Z", "precision": "day"}},
            "status": {"name": "Active", "code": "55561003", "code_system_name": "SNOMED CT"},
            "reactions": [{
                "date_time": {"low": {"date": "2007-05-01T00:00:00Z", "precision": "day"}},
                "reaction": {"name": "Nausea", "code": "422587007",
                             "code_system_name": "SNOMED CT"},
                "severity": {"code": {"name": "Mild", "code": "255604002",
                                      "code_system_name": "SNOMED CT"}},
            }],
        },
    },
    {
        "identifiers": [{"identifier": "36e3e930-7b14-11db-9fe1-0800200c9a67"}],
        "date_time": {"low": {"date": "2006-05-01T00:00:00Z", "precision": "day"}},
        "observation": {
            "allergen": {"name": "Codeine", "code": "2670", "code_system_name": "RXNORM"},
            "intolerance": {"name": "Propensity to adverse reactions to drug",
                            "code": "419511003", "code_system_name": "SNOMED CT"},
        },
    },
]

PROBLEMS = [{
    "identifiers": [{"identifier": "ab1791b0-5c71-11db-b0de-0800200c9a66"}],
    "date_time": {"low": {"date": "2008-01-03T00:00:00Z", "precision": "day"}},
    "problem": {
        "code": {"name": "Pneumonia", "code": "233604007", "code_system_name": "SNOMED CT"},
        "date_time": {"low": {"date": "2008-01-03T00:00:00Z", "precision": "day"}},
    },
    "status": {"name": "Resolved", "code": "413322009", "code_system_name": "SNOMED CT"},
}]

ENCOUNTERS = [
    {
        "identifiers": [{"identifier": "2a620155-9d11-439e-92b3-5d9815ff4de8"}],
        "encounter": {
            "name": "Office outpatient visit 15 minutes", "code": "99213",
            "code_system_name": "CPT",
            "translations": [{"name": "Ambulatory", "code": "AMB",
                              "code_system_name": "HL7 ActCode"}],
        },
        "date_time": {"point": {"date": "2000-04-07T00:00:00Z", "precision": "day"}},
        "locations": [{
            "name": "Community Urgent Care Center",
            "location_type": {"name": "Urgent Care Center", "code": "1160-1",
                              "code_system_name": "HealthcareServiceLocation"},
            "address": {"street_lines": ["17 Daws Rd."], "city": "Blue Bell",
                        "state": "MA", "zip": "02368", "country": "US"},
        }],
        "findings": [{
            "identifiers": [{"identifier": "db734647-fc99-424c-a864-7e3cda82e703"}],
            "value": {"name": "Pneumonia", "code": "233604007",
                      "code_system_name": "SNOMED CT"},
            "date_time": {"low": {"date": "2007-01-03T00:00:00Z", "precision": "day"}},
        }],
    },
    {
        "encounter": {"name": "Annual physical", "code": "99395", "code_system_name": "CPT"},
    },
]

IMMUNIZATIONS = [
    {
        "identifiers": [{"identifier": "e6f1ba43-c0ed-4b9b-9f12-f435d8ad8f92"}],
        "date_time": {"point": {"date": "1999-11-01T00:00:00Z", "precision": "month"}},
        "sequence_number": 1,
        "administration": {
            "route": {"name": "Intramuscular injection", "code": "C28161",
                      "code_system_name": "Medication Route FDA"},
            "dose": {"value": 50, "unit": "mcg"},
        },
        "product": {
            "product": {"name": "Influenza virus vaccine", "code": "88",
                        "code_system_name": "CVX"},
            "lot_number": "1",
            "manufacturer": "Health LS - Immuno Inc.",
        },
        "performer": {
            "identifiers": [{"identifier": "2.16.840.1.113883.19.5.9999.456",
                             "extension": "2981824"}],
            "organization": {"name": ["Good Health Clinic"]},
        },
        "instructions": {
            "code": {"name": "immunization education", "code": "171044003",
                     "code_system_name": "SNOMED CT"},
            "free_text": "Possible flu-like symptoms for three days.",
        },
    },
    {
        "product": {"product": {"name": "Tetanus and diphtheria toxoids", "code": "09",
                                "code_system_name": "CVX"}},
        "refusal_reason": "PATOBJ",
    },
]

MEDICATIONS = [
    {
        "identifiers": [{"identifier": "cdbd33f0-6cde-11db-9fe1-0800200c9a66"}],
        "status": "Completed",
        "sig": "Proventil HFA",
        "date_time": {
            "low": {"date": "2007-01-03T00:00:00Z", "precision": "day"},
            "high": {"date": "2012-05-15T00:00:00Z", "precision": "day"},
        },
        "administration": {
            "route": {"name": "RESPIRATORY (INHALATION)", "code": "C38216",
                      "code_system_name": "Medication Route FDA"},
            "form": {"name": "INHALANT", "code": "C42944",
                     "code_system_name": "Medication Route FDA"},
            "dose": {"value": 1, "unit": "{spray}"},
            "interval": {"period": {"value": 12, "unit": "h"}, "institution_specified": True},
        },
        "product": {
            "identifiers": [{"identifier": "2a620155-9d11-439e-92b3-5d9815ff4ee8"}],
            "product": {
                "name": "Proventil HFA", "code": "219483", "code_system_name": "RXNORM",
                "translations": [{"name": "Proventil 0.09 MG/ACTUAT inhalant solution",
                                  "code": "573621", "code_system_name": "RXNORM"}],
            },
            "manufacturer": "Medication Factory Inc.",
        },
        "indications": [{
            "identifiers": [{"identifier": "db734647-fc99-424c-a864-7e3cda82e703"}],
            "code": {"name": "Finding", "code": "404684003", "code_system_name": "SNOMED CT"},
            "date_time": {"low": {"date": "2007-01-03T00:00:00Z", "precision": "day"}},
            "value": {"name": "Pneumonia", "code": "233604007",
                      "code_system_name": "SNOMED CT"},
        }],
    },
    {
        "product": {"product": {"name": "Aspirin", "code": "1191",
                                "code_system_name": "RXNORM"}},
    },
]

PLAN_OF_CARE = [
    {
        "identifiers": [{"identifier": "9a6d1bac-17d3-4195-89a4-1121bc809b4a"}],
        "plan": {"name": "Colonoscopy", "code": "73761001", "code_system_name": "SNOMED CT"},
        "status": {"code": "Active"},
        "date_time": {"point": {"date": "2012-05-12T00:00:00Z", "precision": "day"}},
    },
    {
        "plan": {"name": "Follow-up visit", "code": "390906007",
                 "code_system_name": "SNOMED CT"},
    },
]

PROCEDURES = [
    {
        "identifiers": [{"identifier": "d68b7e32-7810-4f5b-9cc2-acd54b0fd85d"}],
        "procedure": {"name": "Colonic polypectomy", "code": "274025005",
                      "code_system_name": "SNOMED CT"},
        "status": "Completed",
        "date_time": {"point": {"date": "2012-05-12T00:00:00Z", "precision": "day"}},
        "body_sites": [{"name": "colon", "code": "71854001", "code_system_name": "SNOMED CT"}],
        "performers": [{
            "identifiers": [{"identifier": "2.16.840.1.113883.19.5.9999.456",
                             "extension": "2981823"}],
            "address": [{"street_lines": ["1001 Village Avenue"], "city": "Portland",
                         "state": "OR", "zip": "99123", "country": "US"}],
            "phone": [{"number": "555-555-5000", "type": "work place"}],
            "organization": [{"name": ["Community Health and Hospitals"]}],
        }],
    },
    {
        "procedure": {"name": "Chest X-Ray", "code": "168731009",
                      "code_system_name": "SNOMED CT"},
        "performers": [{"identifiers": [{"identifier": "2.16.840.1.113883.19.5.9999.456"}]}],
    },
]

PAYERS = [{
    "identifiers": [{"identifier": "1fe2cdd0-7aad-11db-9fe1-0800200c9a66"}],
    "policy": {
        "identifiers": [{"identifier": "3e676a50-7aac-11db-9fe1-0800200c9a66"}],
        "code": {"code": "SELF", "name": "self", "code_system_name": "HL7 RoleClassRelationship"},
        "insurance": {
            "code": {"code": "PAYOR", "name": "Payor",
                     "code_system_name": "HL7 RoleClassRelationship"},
            "performer": {
                "identifiers": [{"identifier": "2.16.840.1.113883.19"}],
                "organization": [{"name": ["Good Health Insurance"]}],
            },
        },
    },
    "guarantor": {
        "name": [{"first": "Isaac", "last": "Jones"}],
    },
    "participant": {
        "code": {"name": "Self", "code": "SELF", "code_system_name": "HL7 Role"},
    },
}]

RESULTS = [{
    "identifiers": [{"identifier": "7d5a02b0-67a4-11db-bd13-0800200c9a66"}],
    "result_set": {"name": "CBC WO DIFFERENTIAL", "code": "43789009",
                   "code_system_name": "SNOMED CT"},
    "results": [
        {
            "result": {"name": "HGB", "code": "30313-1", "code_system_name": "LOINC"},
            "date_time": {"point": {"date": "2000-03-23T14:30:00Z", "precision": "minute"}},
            "value": 13.2,
            "unit": "g/dl",
            "interpretations": ["Normal"],
            "reference_range": {"range": "M 13-18 g/dl; F 12-16 g/dl"},
        },
        {
            "result": {"name": "Blood type", "code": "882-1", "code_system_name": "LOINC"},
            "value": "O positive",
        },
    ],
}]

SOCIAL_HISTORY = [
    {
        "code": {"name": "Smoking Status", "code": "72166-2", "code_system_name": "LOINC"},
        "date_time": {"low": {"date": "2005-05-01T00:00:00Z", "precision": "day"}},
        "value": "Former smoker",
    },
    {
        "code": {"name": "Alcohol consumption", "code": "160573003",
                 "code_system_name": "SNOMED CT"},
        "value": "None",
    },
]

VITALS = [
    {
        "vital": {"name": "Height", "code": "8302-2", "code_system_name": "LOINC"},
        "date_time": {"point": {"date": "1999-11-14T00:00:00Z", "precision": "day"}},
        "value": 177, "unit": "cm",
    },
    {
        "vital": {"name": "Patient Body Weight - Measured", "code": "3141-9",
                  "code_system_name": "LOINC"},
        "date_time": {"point": {"date": "1999-11-14T00:00:00Z", "precision": "day"}},
        "value": 86, "unit": "kg",
    },
    {
        "vital": {"name": "Height", "code": "8302-2", "code_system_name": "LOINC"},
        "date_time": {"point": {"date": "2000-04-07T00:00:00Z", "precision": "day"}},
        "value": 177, "unit": "cm",
    },
]


@pytest.fixture
def demographics():
    return copy.deepcopy(DEMOGRAPHICS)


@pytest.fixture
def allergies():
    return copy.deepcopy(ALLERGIES)


@pytest.fixture
def full_record():
    """A record touching every kind of handler."""
    return {
        "demographics": copy.deepcopy(DEMOGRAPHICS),
        "allergies": copy.deepcopy(ALLERGIES),
        "encounters": copy.deepcopy(ENCOUNTERS),
        "immunizations": copy.deepcopy(IMMUNIZATIONS),
        "medications": copy.deepcopy(MEDICATIONS),
        "plan_of_care": copy.deepcopy(PLAN_OF_CARE),
        "problems": copy.deepcopy(PROBLEMS),
        "procedures": copy.deepcopy(PROCEDURES),
        "payers": copy.deepcopy(PAYERS),
        "results": copy.deepcopy(RESULTS),
        "social_history": copy.deepcopy(SOCIAL_HISTORY),
        "vitals": copy.deepcopy(VITALS),
    }


@pytest.fixture
def header_only_record():
    return {"demographics": copy.deepcopy(DEMOGRAPHICS)}


@pytest.fixture
def config():
    from ccdagen.config import GeneratorConfig
    return GeneratorConfig(effective_time="TODO", count_all_section_keys=False,
                           pretty_print=True)
