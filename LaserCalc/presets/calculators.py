"""Parameter maps for the calculator catalog.

Each calculator type declares its required and optional fields, default values,
value checks and display names. The preset store treats parameters as opaque; these
maps are used at the host form boundary to build inputs and check values.
"""
import copy
import logging
from typing import Any, Callable, Dict, List, Mapping, Tuple

CALCULATOR_SCHEMA: Dict[str, Dict[str, Any]] = {
    'laser-cutting-cost': {
        'label': 'Laser Cutting Cost',
        'required': ['material_type', 'thickness', 'length', 'width', 'quantity'],
        'optional': [
            'material_cost', 'laser_power', 'cutting_speed', 'gas_type', 'gas_consumption', 'gas_cost',
            'electricity_rate', 'labor_rate', 'machine_hourly_rate', 'setup_time', 'waste_factor',
        ],
        'defaults': {
            'material_type': 'Mild Steel',
            'thickness': 3.0,
            'length': 1000.0,
            'width': 500.0,
            'quantity': 1,
            'material_cost': 2.5,
            'laser_power': 1500.0,
            'cutting_speed': 2500.0,
            'gas_type': 'Oxygen',
            'gas_consumption': 0.8,
            'gas_cost': 0.15,
            'electricity_rate': 0.12,
            'labor_rate': 25.0,
            'machine_hourly_rate': 45.0,
            'setup_time': 15.0,
            'waste_factor': 0.1,
        },
        'checks': {
            'thickness': lambda v: 0 < v <= 100,
            'length': lambda v: 0 < v <= 10000,
            'width': lambda v: 0 < v <= 10000,
            'quantity': lambda v: 0 < v <= 10000,
            'material_cost': lambda v: v >= 0,
            'laser_power': lambda v: 0 < v <= 10000,
            'cutting_speed': lambda v: 0 < v <= 20000,
        },
        'display_names': {
            'material_type': 'Material Type',
            'thickness': 'Thickness (mm)',
            'length': 'Length (mm)',
            'width': 'Width (mm)',
            'quantity': 'Quantity',
            'material_cost': 'Material Cost ($/m²)',
            'laser_power': 'Laser Power (W)',
            'cutting_speed': 'Cutting Speed (mm/min)',
            'gas_type': 'Gas Type',
            'gas_consumption': 'Gas Consumption (m³/h)',
            'gas_cost': 'Gas Cost ($/m³)',
            'electricity_rate': 'Electricity Rate ($/kWh)',
            'labor_rate': 'Labor Rate ($/h)',
            'machine_hourly_rate': 'Machine Rate ($/h)',
            'setup_time': 'Setup Time (min)',
            'waste_factor': 'Waste Factor',
        },
    },
    'cutting-time-estimator': {
        'label': 'Cutting Time Estimator',
        'required': ['total_length', 'pierce_count', 'material_type', 'thickness'],
        'optional': ['cutting_speed', 'pierce_time', 'setup_time', 'gas_type', 'complexity'],
        'defaults': {
            'total_length': 1000.0,
            'pierce_count': 4,
            'material_type': 'steel',
            'thickness': 3.0,
            'cutting_speed': 2500.0,
            'pierce_time': 0.8,
            'setup_time': 15.0,
            'gas_type': 'oxygen',
            'complexity': 'medium',
        },
        'checks': {
            'total_length': lambda v: 0 < v <= 100000,
            'pierce_count': lambda v: 0 <= v <= 1000,
            'thickness': lambda v: 0 < v <= 100,
            'cutting_speed': lambda v: 0 < v <= 20000,
            'pierce_time': lambda v: 0 <= v <= 10,
            'setup_time': lambda v: 0 <= v <= 300,
        },
        'display_names': {
            'total_length': 'Total Cut Length (mm)',
            'pierce_count': 'Number of Pierces',
            'material_type': 'Material Type',
            'thickness': 'Thickness (mm)',
            'cutting_speed': 'Cutting Speed (mm/min)',
            'pierce_time': 'Pierce Time (s)',
            'setup_time': 'Setup Time (min)',
            'gas_type': 'Gas Type',
            'complexity': 'Geometry Complexity',
        },
    },
    'gas-consumption': {
        'label': 'Gas Consumption',
        'required': ['gas_type', 'pressure', 'flow_rate', 'cutting_time'],
        'optional': ['material_type', 'thickness', 'nozzle_diameter', 'efficiency'],
        'defaults': {
            'gas_type': 'oxygen',
            'pressure': 1.5,
            'flow_rate': 0.8,
            'cutting_time': 60.0,
            'material_type': 'steel',
            'thickness': 3.0,
            'nozzle_diameter': 1.5,
            'efficiency': 0.85,
        },
        'checks': {
            'pressure': lambda v: 0 < v <= 20,
            'flow_rate': lambda v: 0 < v <= 10,
            'cutting_time': lambda v: 0 < v <= 1440,
            'thickness': lambda v: 0 < v <= 100,
            'nozzle_diameter': lambda v: 0 < v <= 10,
            'efficiency': lambda v: 0 < v <= 1,
        },
        'display_names': {
            'gas_type': 'Gas Type',
            'pressure': 'Pressure (bar)',
            'flow_rate': 'Flow Rate (m³/h)',
            'cutting_time': 'Cutting Time (min)',
            'material_type': 'Material Type',
            'thickness': 'Thickness (mm)',
            'nozzle_diameter': 'Nozzle Diameter (mm)',
            'efficiency': 'Efficiency Factor',
        },
    },
    'material-selection': {
        'label': 'Material Selection',
        'required': ['application', 'thickness', 'strength'],
        'optional': ['corrosion_resistance', 'cost', 'availability'],
        'defaults': {
            'application': 'structural',
            'thickness': 5.0,
            'strength': 'medium',
            'corrosion_resistance': 'standard',
            'cost': 'medium',
            'availability': 'good',
        },
        'checks': {
            'thickness': lambda v: 0 < v <= 100,
        },
        'display_names': {
            'application': 'Application Type',
            'thickness': 'Thickness (mm)',
            'strength': 'Strength Requirement',
            'corrosion_resistance': 'Corrosion Resistance',
            'cost': 'Cost Consideration',
            'availability': 'Material Availability',
        },
    },
    'laser-parameter-optimizer': {
        'label': 'Laser Parameter Optimizer',
        'required': ['material_type', 'thickness'],
        'optional': ['quality', 'speed'],
        'defaults': {'material_type': 'steel', 'thickness': 3.0, 'quality': 'medium', 'speed': 'medium'},
        'checks': {'thickness': lambda v: 0 < v <= 100},
        'display_names': {
            'material_type': 'Material',
            'thickness': 'Thickness (mm)',
            'quality': 'Quality',
            'speed': 'Speed',
        },
    },
    'production-capacity': {
        'label': 'Production Capacity',
        'required': ['machine_count', 'working_hours'],
        'optional': ['efficiency', 'downtime'],
        'defaults': {'machine_count': 1, 'working_hours': 8.0, 'efficiency': 0.85, 'downtime': 0.1},
        'checks': {
            'machine_count': lambda v: v > 0,
            'working_hours': lambda v: 0 < v <= 24,
        },
        'display_names': {
            'machine_count': 'Machine Count',
            'working_hours': 'Working Hours',
            'efficiency': 'Efficiency',
            'downtime': 'Downtime',
        },
    },
    'quality-grade': {
        'label': 'Quality Grade',
        'required': ['material_type', 'thickness', 'tolerance'],
        'optional': ['surface_finish', 'edge_quality'],
        'defaults': {
            'material_type': 'steel',
            'thickness': 3.0,
            'tolerance': 0.1,
            'surface_finish': 'standard',
            'edge_quality': 'good',
        },
        'checks': {
            'thickness': lambda v: v > 0,
            'tolerance': lambda v: v > 0,
        },
        'display_names': {
            'material_type': 'Material',
            'thickness': 'Thickness (mm)',
            'tolerance': 'Tolerance (mm)',
            'surface_finish': 'Surface Finish',
            'edge_quality': 'Edge Quality',
        },
    },
    'energy-cost': {
        'label': 'Energy Cost',
        'required': ['laser_power', 'operating_time', 'electricity_rate'],
        'optional': ['efficiency', 'auxiliary_power'],
        'defaults': {
            'laser_power': 1500.0,
            'operating_time': 8.0,
            'electricity_rate': 0.12,
            'efficiency': 0.85,
            'auxiliary_power': 200.0,
        },
        'checks': {
            'laser_power': lambda v: v > 0,
            'operating_time': lambda v: v > 0,
            'electricity_rate': lambda v: v >= 0,
        },
        'display_names': {
            'laser_power': 'Laser Power (W)',
            'operating_time': 'Operating Time (h)',
            'electricity_rate': 'Electricity Rate ($/kWh)',
            'efficiency': 'Efficiency',
            'auxiliary_power': 'Auxiliary Power (W)',
        },
    },
    'maintenance-cost': {
        'label': 'Maintenance Cost',
        'required': ['machine_value', 'operating_hours'],
        'optional': ['maintenance_rate', 'consumables'],
        'defaults': {
            'machine_value': 500000.0,
            'operating_hours': 2000.0,
            'maintenance_rate': 0.05,
            'consumables': 1000.0,
        },
        'checks': {
            'machine_value': lambda v: v > 0,
            'operating_hours': lambda v: v > 0,
        },
        'display_names': {
            'machine_value': 'Machine Value ($)',
            'operating_hours': 'Operating Hours',
            'maintenance_rate': 'Maintenance Rate',
            'consumables': 'Consumables Cost ($)',
        },
    },
    'equipment-comparison': {
        'label': 'Equipment Comparison',
        'required': ['machine1', 'machine2'],
        'optional': ['criteria', 'weights'],
        'defaults': {
            'machine1': 'Machine A',
            'machine2': 'Machine B',
            'criteria': 'cost,speed,quality',
            'weights': '1,1,1',
        },
        'checks': {},
        'display_names': {
            'machine1': 'Machine 1',
            'machine2': 'Machine 2',
            'criteria': 'Comparison Criteria',
            'weights': 'Criteria Weights',
        },
    },
    'kerf-width': {
        'label': 'Kerf Width',
        'required': ['material_type', 'thickness', 'laser_power'],
        'optional': ['gas_type', 'cutting_speed'],
        'defaults': {
            'material_type': 'steel',
            'thickness': 3.0,
            'laser_power': 1500.0,
            'gas_type': 'oxygen',
            'cutting_speed': 2500.0,
        },
        'checks': {
            'thickness': lambda v: v > 0,
            'laser_power': lambda v: v > 0,
        },
        'display_names': {
            'material_type': 'Material',
            'thickness': 'Thickness (mm)',
            'laser_power': 'Laser Power (W)',
            'gas_type': 'Gas Type',
            'cutting_speed': 'Cutting Speed (mm/min)',
        },
    },
    'power-requirement': {
        'label': 'Power Requirement',
        'required': ['material_type', 'thickness', 'cutting_speed'],
        'optional': ['quality', 'gas_type'],
        'defaults': {
            'material_type': 'steel',
            'thickness': 3.0,
            'cutting_speed': 2500.0,
            'quality': 'medium',
            'gas_type': 'oxygen',
        },
        'checks': {
            'thickness': lambda v: v > 0,
            'cutting_speed': lambda v: v > 0,
        },
        'display_names': {
            'material_type': 'Material',
            'thickness': 'Thickness (mm)',
            'cutting_speed': 'Cutting Speed (mm/min)',
            'quality': 'Quality',
            'gas_type': 'Gas Type',
        },
    },
    'batch-processing': {
        'label': 'Batch Processing',
        'required': ['batch_size', 'part_count'],
        'optional': ['setup_time', 'cycle_time'],
        'defaults': {'batch_size': 10, 'part_count': 100, 'setup_time': 30.0, 'cycle_time': 5.0},
        'checks': {
            'batch_size': lambda v: v > 0,
            'part_count': lambda v: v > 0,
        },
        'display_names': {
            'batch_size': 'Batch Size',
            'part_count': 'Part Count',
            'setup_time': 'Setup Time (min)',
            'cycle_time': 'Cycle Time (min)',
        },
    },
    'competitive-pricing': {
        'label': 'Competitive Pricing',
        'required': ['base_cost', 'margin'],
        'optional': ['competitor_price', 'market_factor'],
        'defaults': {'base_cost': 100.0, 'margin': 0.3, 'competitor_price': 150.0, 'market_factor': 1.0},
        'checks': {
            'base_cost': lambda v: v > 0,
            'margin': lambda v: v >= 0,
        },
        'display_names': {
            'base_cost': 'Base Cost ($)',
            'margin': 'Profit Margin',
            'competitor_price': 'Competitor Price ($)',
            'market_factor': 'Market Factor',
        },
    },
}


def calculator_types() -> List[str]:
    """Return the known calculator type identifiers."""
    return list(CALCULATOR_SCHEMA.keys())


def label(calculator_type: str) -> str:
    """Return the human readable name of a calculator type."""
    config = CALCULATOR_SCHEMA.get(calculator_type)
    if not config:
        return calculator_type
    return config['label']


def fields(calculator_type: str) -> List[str]:
    """Return required then optional fields of a calculator type."""
    config = CALCULATOR_SCHEMA.get(calculator_type)
    if not config:
        return []
    return config['required'] + config['optional']


def default_parameters(calculator_type: str) -> Dict[str, Any]:
    """Return a fresh copy of the default parameters, or an empty dict if unknown."""
    config = CALCULATOR_SCHEMA.get(calculator_type)
    if not config:
        logging.warning(f'Unknown calculator type: {calculator_type}')
        return {}
    return copy.deepcopy(config['defaults'])


def merge_with_defaults(calculator_type: str, parameters: Mapping[str, Any]) -> Dict[str, Any]:
    """Overlay parameters onto the calculator's defaults."""
    merged = default_parameters(calculator_type)
    merged.update(copy.deepcopy(dict(parameters or {})))
    return merged


def display_name(calculator_type: str, field: str) -> str:
    """Return the display name of a parameter, falling back to the field name."""
    config = CALCULATOR_SCHEMA.get(calculator_type)
    if not config:
        return field
    return config['display_names'].get(field, field)


def validate_parameters(calculator_type: str, parameters: Mapping[str, Any]) -> Tuple[List[str], List[str]]:
    """Check parameters against a calculator's schema.

    Missing required fields and failed value checks are errors. Fields the calculator
    does not know are warnings.

    Args:
        calculator_type: The calculator type identifier.
        parameters: The parameters to check.

    Returns:
        A tuple of (errors, warnings). The parameters are valid when errors is empty.
    """
    config = CALCULATOR_SCHEMA.get(calculator_type)
    if not config:
        return [f'Unknown calculator type: {calculator_type}'], []

    errors = []
    warnings = []

    for field in config['required']:
        if parameters.get(field) is None:
            errors.append(f"Required field '{display_name(calculator_type, field)}' is missing")

    checks: Dict[str, Callable[[Any], bool]] = config['checks']
    for field, check in checks.items():
        value = parameters.get(field)
        if value is None:
            continue
        try:
            ok = check(value)
        except TypeError:
            ok = False
        if not ok:
            errors.append(f"Invalid value for '{display_name(calculator_type, field)}'")

    known = set(fields(calculator_type))
    for field in parameters:
        if field not in known:
            warnings.append(f"Unknown field '{field}' will be ignored")

    return errors, warnings
