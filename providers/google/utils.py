def _construct_error_info(response_object, ignore_codes):
    """

    :param response_object:
    :param ignore_codes:
    :return: {'error_code': , 'reason' , 'message': } dict
    """
    result = {'error_code': None, 'reason': '', 'message': ''}

    if ((response_object.status_code < 200 or response_object.status_code > 299) and
            response_object.status_code not in ignore_codes):
        result['error_code'] = response_object.status_code

        try:
            rx_dict = response_object.json()
        except ValueError:
            return result

        if not isinstance(rx_dict, dict):
            return result

        error = rx_dict.get('error')
        if isinstance(error, dict):
            result['error_code'] = error.get('code', response_object.status_code)
            errors = error.get('errors') or [{}]
            result['reason'] = errors[0].get('reason', '')
            result['message'] = error.get('message', '')
        elif 'error_description' in rx_dict:
            result['message'] = rx_dict['error_description']
        elif 'message' in rx_dict:
            result['message'] = rx_dict['message']

    return result


def process_google_response_for_errors(response_object, logger, raise_for_status=True,
                                       ignore_codes=()):
    """
    Will check for errors that require a backoff and return True if backoff is required.
    Will check for non-success codes and output any error messages in the log.
    Will raise exceptions for non success conditions if requested.

    :param response_object:
    :param logger:
    :param raise_for_status: if True, will raise any exception (other than those
    caused by codes in ignore_codes).
    :param ignore_codes: a list of http response codes that will be treated as
    successes.
    :return: True if backoff is required. False otherwise.
    """

    error_dict = _construct_error_info(response_object, ignore_codes)

    if error_dict['error_code'] is None:
        return False

    backoff = ((499 < error_dict['error_code'] < 600) or
               (error_dict['error_code'] in [403, 429] and
                error_dict['reason'] in ['rateLimitExceeded', 'userRateLimitExceeded']))

    if backoff:
        logger.warning('Google requested backoff with code {}, {}'.format(
            error_dict['error_code'], error_dict['message']
        ))
    else:
        logger.error('Google responded with error code: {}, message: {}'.format(
            error_dict['error_code'], error_dict['message']))

    if raise_for_status is True:
        response_object.raise_for_status()

    return backoff
