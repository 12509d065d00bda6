from flask import current_app

from mindclinic.utils.dates import clinic_now


def get_now():
    """
    Reference time for calculators.

    Tests (or a replay job) may pin the clock with app.config['CLOCK'].
    """
    clock = current_app.config.get('CLOCK')
    if clock is not None:
        return clock()
    return clinic_now(current_app.config.get('CLINIC_TIMEZONE'))
