import copy
import os
import re
from io import BytesIO
from typing import Tuple, Dict

from PIL import Image
from chalice import Response
from requests_toolbelt.multipart.decoder import MultipartDecoder

from chalicelib.constants.constants import MAIN_IMAGE_NAME, THUMB_IMAGE_NAME, PERMISSION_MANAGE_SETTINGS
from chalicelib.constants.status_codes import http200
from chalicelib.menu_templates import MenuItemTemplate, check_menu_access
from chalicelib.restaurants import Restaurant
from chalicelib.utils import auth as utils_auth, app as utils_app, exceptions
from chalicelib.utils.logger import logger
from chalicelib.utils.s3 import upload_file_to_s3

entities_to_upload_attachment_white_list = ['restaurant', 'menu_item_template']


def get_resize_width_height(image: Image, max_width: int) -> Tuple[int, int]:
    width, height = image.size
    divider = max(max([width, height]) / max_width, 1)
    return int(width / divider), int(height / divider)


def get_thumbnail(image: Image) -> Image:
    image_thumb = copy.deepcopy(image)
    width, height = get_resize_width_height(image_thumb, int(os.environ.get('MAX_THUMBNAIL_WIDTH')))
    image_thumb.thumbnail(size=(width, height))
    return image_thumb


def compress_images(image_file_obj: BytesIO) -> Tuple[bytes, bytes]:
    image: Image = Image.open(image_file_obj).convert('RGB')
    image = image.resize(size=get_resize_width_height(image, int(os.environ.get('MAX_IMG_WIDTH'))))

    image_thumb: Image = get_thumbnail(image)

    buf_main = BytesIO()
    image.save(buf_main, format='JPEG', optimize=True, quality=85)

    buf_thumb = BytesIO()
    image_thumb.save(buf_thumb, format='JPEG', optimize=True, quality=85)

    return buf_main.getvalue(), buf_thumb.getvalue()


def parse_multipart_request_data(current_request) -> Dict[str, bytes]:
    content_type = current_request.headers.get('content-type', '')
    if not content_type.startswith('multipart/form-data'):
        raise exceptions.ValidationException('multipart/form-data request is expected')
    fields = {}
    for part in MultipartDecoder(current_request.raw_body, content_type).parts:
        disposition = part.headers.get(b'Content-Disposition', b'').decode('utf-8')
        name = re.search(r'name="([^"]+)"', disposition)
        if name:
            fields[name.group(1)] = part.content
    for field in ('entityType', 'entityId', 'fileContent'):
        if not fields.get(field):
            raise exceptions.MandatoryFieldsAreNotFilled(f'{field} is mandatory')
    return fields


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def image_upload(current_request) -> Response:
    auth_result = current_request.auth_result
    fields = parse_multipart_request_data(current_request)
    entity_type = fields['entityType'].decode('utf-8')
    entity_id = fields['entityId'].decode('utf-8')
    if entity_type not in entities_to_upload_attachment_white_list:
        raise exceptions.ValidationException(f'You could not upload attachment to {entity_type=}')

    if entity_type == 'restaurant':
        entity = Restaurant.init_by_id(entity_id)
        utils_auth.check_restaurant_access(auth_result, entity._to_dict(), permission=PERMISSION_MANAGE_SETTINGS)
        images_path = f'{entity.vendor_id}/restaurants/{entity_id}/images'
    else:
        requested_vendor_id = fields['vendorId'].decode('utf-8') if fields.get('vendorId') else None
        entity = MenuItemTemplate.init_by_id(check_menu_access(auth_result, requested_vendor_id), entity_id)
        images_path = f'{entity.vendor_id}/menu_item_templates/{entity_id}/images'

    try:
        content_main, content_thumb = compress_images(BytesIO(fields['fileContent']))
    except (OSError, ValueError) as error:
        raise exceptions.ValidationException(f'fileContent is not a valid image: {error}')

    main_url = upload_file_to_s3(content_main, f'{images_path}/{MAIN_IMAGE_NAME}', 'image/jpeg')
    thumb_url = upload_file_to_s3(content_thumb, f'{images_path}/{THUMB_IMAGE_NAME}', 'image/jpeg')

    entity.request_data = {'auth_result': auth_result}
    if entity_type == 'restaurant':
        entity.banner_url = main_url
    else:
        entity.image_url = main_url
    entity._update_db_record()
    logger.info(f'image_upload ::: {entity_type} {entity_id} image updated, {main_url=}')
    return Response(status_code=http200, headers={"Content-Type": 'application/json'},
                    body={'message': f'{entity_type} image was updated successfully',
                          'image_url': main_url, 'thumbnail_url': thumb_url})
