import logging

from storefront.core.exceptions import InvalidSelection
from storefront.pricing.calculators import (
    MULTI_CHOICE_STYLES, SINGLE_CHOICE_STYLES, calculate_material_costs, money, style_addons_total,
)
from .models import EmbroideryOption

logger = logging.getLogger(__name__)


def selected_option_ids(selected_styles):
    """Ids of every option referenced by a selectedStyles object"""
    ids = []
    if not isinstance(selected_styles, dict):
        return ids
    for category in SINGLE_CHOICE_STYLES:
        option = selected_styles.get(category)
        if isinstance(option, dict) and option.get('id') is not None:
            ids.append(option['id'])
    for category in MULTI_CHOICE_STYLES:
        for option in selected_styles.get(category) or []:
            if isinstance(option, dict) and option.get('id') is not None:
                ids.append(option['id'])
    return ids


def validate_selection(selected_styles):
    """
    Check a style selection against the option catalog.

    Every referenced option must exist and be active, and no selected option
    may list another selected option as incompatible. Returns the options by id.
    """
    raw_ids = selected_option_ids(selected_styles)
    try:
        ids = [int(value) for value in raw_ids]
    except (TypeError, ValueError):
        raise InvalidSelection('Option ids must be integers')

    options = {option.id: option for option in EmbroideryOption.objects.filter(pk__in=ids)}
    for option_id in ids:
        option = options.get(option_id)
        if option is None or not option.is_active:
            raise InvalidSelection(f'Embroidery option {option_id} is not available')

    chosen = set(ids)
    for option_id in ids:
        clashes = chosen.intersection(int(other) for other in options[option_id].incompatible_with or [])
        clashes.discard(option_id)
        if clashes:
            other = options[min(clashes)]
            raise InvalidSelection(f'{options[option_id].name} cannot be combined with {other.name}')
    return options


def price_selection(selected_styles, options):
    """Replace client supplied option prices with catalog prices"""
    priced = {}
    for category in SINGLE_CHOICE_STYLES:
        option = selected_styles.get(category)
        if isinstance(option, dict) and option.get('id') is not None:
            catalog_option = options[int(option['id'])]
            priced[category] = {'id': catalog_option.id, 'name': catalog_option.name, 'price': str(catalog_option.price)}
    for category in MULTI_CHOICE_STYLES:
        entries = []
        for option in selected_styles.get(category) or []:
            if isinstance(option, dict) and option.get('id') is not None:
                catalog_option = options[int(option['id'])]
                entries.append({'id': catalog_option.id, 'name': catalog_option.name, 'price': str(catalog_option.price)})
        if entries:
            priced[category] = entries
    return priced


def quote_design(width, height, selected_styles, stitch_count=None):
    """Validated selection with material costs and totals for a design"""
    options = validate_selection(selected_styles)
    priced_styles = price_selection(selected_styles or {}, options)
    materials = calculate_material_costs(width, height, stitch_count)
    options_price = style_addons_total(priced_styles)
    return {
        'selected_styles': priced_styles,
        'material_costs': {key: str(value) if key != 'stitch_count' else value for key, value in materials.items()},
        'options_price': options_price,
        'total_price': money(materials['total'] + options_price),
    }
