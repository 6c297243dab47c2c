"""
Price arithmetic for cart lines, embroidery designs and orders.

Every function works on Decimal and returns amounts quantized to cents.
Inputs usually come straight from client JSON, so any value that is missing
or not a number counts as zero instead of raising.
"""
import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings

CENTS = Decimal('0.01')
ZERO = Decimal('0')
CM_PER_INCH = Decimal('2.54')

# Single-choice style categories, each holds one option or nothing
SINGLE_CHOICE_STYLES = ('coverage', 'material', 'border', 'backing', 'cutting')
# Multi-choice style categories, each holds a list of options
MULTI_CHOICE_STYLES = ('threads', 'upgrades')

DEFAULT_MATERIALS = {
    'Fabric': {'cost': Decimal('34'), 'width': Decimal('30'), 'length': Decimal('36'), 'waste_factor': Decimal('1.5')},
    'Patch Attach': {'cost': Decimal('100'), 'width': Decimal('9'), 'length': Decimal('360'), 'waste_factor': Decimal('1.5')},
    'Thread': {'cost': Decimal('4'), 'width': Decimal('0'), 'length': Decimal('5000'), 'waste_factor': Decimal('1.2')},
    'Bobbin': {'cost': Decimal('50'), 'width': Decimal('0'), 'length': Decimal('35000'), 'waste_factor': Decimal('1.2')},
    'Cut-Away Stabilizer': {'cost': Decimal('180'), 'width': Decimal('18'), 'length': Decimal('3600'), 'waste_factor': Decimal('1.5')},
    'Wash-Away Stabilizer': {'cost': Decimal('60'), 'width': Decimal('15'), 'length': Decimal('900'), 'waste_factor': Decimal('1.5')},
}

# breakdown key -> material name, for the area priced components
AREA_COMPONENTS = {
    'fabric': 'Fabric',
    'patch_attach': 'Patch Attach',
    'cutaway_stabilizer': 'Cut-Away Stabilizer',
    'washaway_stabilizer': 'Wash-Away Stabilizer',
}

SIZE_TIERS = [
    ('small', Decimal('4'), Decimal('1.0')),
    ('medium', Decimal('16'), Decimal('0.9')),
    ('large', Decimal('36'), Decimal('0.8')),
    ('xlarge', None, Decimal('0.7')),
]


def to_decimal(value):
    """Coerce a loosely typed value to Decimal, anything unusable becomes zero"""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ZERO
        result = Decimal(str(value))
    elif isinstance(value, str):
        value = value.strip()
        if not value:
            return ZERO
        try:
            result = Decimal(value)
        except InvalidOperation:
            return ZERO
    else:
        return ZERO
    if not result.is_finite():
        return ZERO
    return result


def money(value):
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _option_price(option):
    if isinstance(option, dict):
        return to_decimal(option.get('price'))
    return ZERO


def style_addons_total(selected_styles):
    """Sum the prices of every selected style option"""
    if not isinstance(selected_styles, dict):
        return money(ZERO)
    total = ZERO
    for category in SINGLE_CHOICE_STYLES:
        total += _option_price(selected_styles.get(category))
    for category in MULTI_CHOICE_STYLES:
        options = selected_styles.get(category)
        if isinstance(options, (list, tuple)):
            for option in options:
                total += _option_price(option)
    return money(total)


def load_material_table():
    """Default material table with active MaterialCost rows applied on top"""
    from .models import MaterialCost

    table = {name: dict(values) for name, values in DEFAULT_MATERIALS.items()}
    for row in MaterialCost.objects.filter(is_active=True):
        table[row.name] = {
            'cost': row.cost,
            'width': row.width,
            'length': row.length,
            'waste_factor': row.waste_factor,
        }
    return table


def estimate_stitch_count(width, height):
    """Rough stitch estimate from the patch area in square inches"""
    area = to_decimal(width) * to_decimal(height)
    if area <= 0:
        return 0
    stitches = area * settings.STOREFRONT['STITCHES_PER_SQ_INCH']
    return int(stitches.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _area_cost(area, material):
    if not material:
        return ZERO
    sheet = material['width'] * material['length']
    if sheet <= 0:
        return ZERO
    return money(area * material['cost'] * material['waste_factor'] / sheet)


def calculate_material_costs(width, height, stitch_count=None, materials=None):
    """
    Material cost breakdown for a patch of width x height inches.

    Thread is priced per million stitches and bobbin per bobbin length of
    stitches at a gross (144) price. When stitch_count is missing it is
    estimated from the area. Passing materials skips the database lookup.
    """
    width = to_decimal(width)
    height = to_decimal(height)
    breakdown = {key: money(ZERO) for key in AREA_COMPONENTS}
    breakdown.update({'thread': money(ZERO), 'bobbin': money(ZERO), 'total': money(ZERO), 'stitch_count': 0})
    if width <= 0 or height <= 0:
        return breakdown

    if materials is None:
        materials = load_material_table()
    stitches = to_decimal(stitch_count)
    if stitches <= 0:
        stitches = Decimal(estimate_stitch_count(width, height))
    breakdown['stitch_count'] = int(stitches)

    area = width * height
    for key, name in AREA_COMPONENTS.items():
        breakdown[key] = _area_cost(area, materials.get(name))

    thread = materials.get('Thread')
    if thread:
        breakdown['thread'] = money(stitches * thread['cost'] * thread['waste_factor'] / Decimal('1000000'))

    bobbin = materials.get('Bobbin')
    if bobbin and bobbin['length'] > 0:
        breakdown['bobbin'] = money(
            stitches * bobbin['cost'] * bobbin['waste_factor'] / (bobbin['length'] * Decimal('144'))
        )

    breakdown['total'] = money(sum(
        (breakdown[key] for key in list(AREA_COMPONENTS) + ['thread', 'bobbin']), ZERO
    ))
    return breakdown


def size_in_square_inches(width, height, unit='inches'):
    width = to_decimal(width)
    height = to_decimal(height)
    if unit == 'cm':
        width = width / CM_PER_INCH
        height = height / CM_PER_INCH
    return width * height


def size_tier(square_inches):
    for name, max_size, multiplier in SIZE_TIERS:
        if max_size is None or square_inches <= max_size:
            return name, multiplier
    return SIZE_TIERS[-1][0], SIZE_TIERS[-1][2]


def calculate_base_price(width, height, unit='inches'):
    """Area price floored at the minimum design price"""
    config = settings.STOREFRONT
    area = size_in_square_inches(width, height, unit)
    return money(max(area * config['PRICE_PER_SQ_INCH'], config['MINIMUM_DESIGN_PRICE']))


def calculate_tiered_price(width, height, unit='inches'):
    """Area price with the size tier discount applied before the minimum floor"""
    config = settings.STOREFRONT
    area = size_in_square_inches(width, height, unit)
    tier, multiplier = size_tier(area)
    price = max(area * config['PRICE_PER_SQ_INCH'] * multiplier, config['MINIMUM_DESIGN_PRICE'])
    return {
        'tier': tier,
        'multiplier': multiplier,
        'size_in_sq_inches': area.quantize(CENTS, rounding=ROUND_HALF_UP),
        'base_price': money(price),
    }


def calculate_design_price(design, materials=None):
    """Price of one embroidery design: its stated total, or materials plus style add-ons"""
    if not isinstance(design, dict):
        return money(ZERO)
    stated = to_decimal(design.get('totalPrice'))
    if stated > 0:
        return money(stated)

    price = ZERO
    dimensions = design.get('dimensions') if isinstance(design.get('dimensions'), dict) else {}
    width = to_decimal(dimensions.get('width'))
    height = to_decimal(dimensions.get('height'))
    if width > 0 and height > 0:
        price += calculate_material_costs(width, height, design.get('stitchCount'), materials)['total']
    price += style_addons_total(design.get('selectedStyles'))
    return money(price)


def _designs(customization):
    designs = customization.get('designs')
    if isinstance(designs, list):
        return [design for design in designs if isinstance(design, dict)]
    return None


def calculate_item_price(product_id, customization, product_price, fallback_price=None, materials=None):
    """
    Unit price of a cart line.

    Custom embroidery lines are priced purely from their designs. Lines whose
    product is unknown use the fallback price. Everything else is the product
    price plus the price of its designs, or of the legacy single design's
    style add-ons when there is no design list.
    """
    customization = customization if isinstance(customization, dict) else {}
    designs = _designs(customization)

    if str(product_id) == settings.STOREFRONT['CUSTOM_EMBROIDERY_PRODUCT_ID']:
        if designs is not None:
            return money(max(sum((calculate_design_price(d, materials) for d in designs), ZERO), ZERO))
        embroidery_data = customization.get('embroideryData')
        if isinstance(embroidery_data, dict):
            return money(max(to_decimal(embroidery_data.get('totalPrice')), ZERO))
        return money(ZERO)

    if product_price is None:
        return money(max(to_decimal(fallback_price), ZERO))

    price = to_decimal(product_price)
    if designs:
        price += sum((calculate_design_price(d, materials) for d in designs), ZERO)
    else:
        price += style_addons_total(customization.get('selectedStyles'))
    return money(max(price, ZERO))


def calculate_order_totals(line_totals, shipping_rate=None):
    """
    Order totals from (unit_price, quantity) pairs.

    shipping_rate is a selected carrier rate with a totalCost; without one
    shipping is free above the threshold and flat otherwise.
    """
    config = settings.STOREFRONT
    subtotal = money(sum((to_decimal(unit) * int(quantity) for unit, quantity in line_totals), ZERO))
    tax = money(subtotal * config['TAX_RATE'])
    if isinstance(shipping_rate, dict) and shipping_rate.get('totalCost') is not None:
        shipping = money(max(to_decimal(shipping_rate.get('totalCost')), ZERO))
    elif subtotal > config['FREE_SHIPPING_THRESHOLD']:
        shipping = money(ZERO)
    else:
        shipping = money(config['FLAT_SHIPPING_RATE'])
    return {
        'subtotal': subtotal,
        'tax': tax,
        'shipping': shipping,
        'total': money(subtotal + tax + shipping),
    }
