"""
Unit tests for the test-event invocation script
"""

import pytest
import json
import sys
import os
from io import BytesIO
from unittest.mock import Mock

from botocore.exceptions import ClientError
from PIL import Image

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../..'))

import invoke_test_event


class TestBuildTestEvent:
    """Tests for build_test_event function"""

    def test_event_shape(self):
        event = invoke_test_event.build_test_event('mybucket', 'HappyFace.jpg', size=1024)

        record = event['Records'][0]
        assert len(event['Records']) == 1
        assert record['eventSource'] == 'aws:s3'
        assert record['eventName'] == 'ObjectCreated:Put'
        assert record['s3']['bucket']['name'] == 'mybucket'
        assert record['s3']['bucket']['arn'] == 'arn:aws:s3:::mybucket'
        assert record['s3']['object']['key'] == 'HappyFace.jpg'
        assert record['s3']['object']['size'] == 1024

    def test_key_encoded_like_s3(self):
        event = invoke_test_event.build_test_event('mybucket', 'albums/a b+c.png')

        assert event['Records'][0]['s3']['object']['key'] == 'albums/a+b%2Bc.png'

    def test_region(self):
        event = invoke_test_event.build_test_event('mybucket', 'x.jpg', region='eu-west-1')

        assert event['Records'][0]['awsRegion'] == 'eu-west-1'

    def test_json_serializable(self):
        event = invoke_test_event.build_test_event('mybucket', 'x.jpg')

        assert json.loads(json.dumps(event)) == event


class TestMakeSampleImage:
    """Tests for make_sample_image function"""

    def test_jpg(self):
        body, content_type = invoke_test_event.make_sample_image('jpg', 320, 240)

        assert content_type == 'image/jpeg'
        with Image.open(BytesIO(body)) as image:
            assert image.format == 'JPEG'
            assert image.size == (320, 240)

    def test_png_uppercase(self):
        body, content_type = invoke_test_event.make_sample_image('PNG')

        assert content_type == 'image/png'
        with Image.open(BytesIO(body)) as image:
            assert image.format == 'PNG'

    def test_unsupported(self):
        with pytest.raises(KeyError):
            invoke_test_event.make_sample_image('gif')


class TestUploadSampleImage:
    """Tests for upload_sample_image function"""

    def test_uploads(self):
        mock_s3 = Mock()

        size = invoke_test_event.upload_sample_image(mock_s3, 'mybucket', 'HappyFace.jpg')

        mock_s3.put_object.assert_called_once()
        put_args = mock_s3.put_object.call_args[1]
        assert put_args['Bucket'] == 'mybucket'
        assert put_args['Key'] == 'HappyFace.jpg'
        assert put_args['ContentType'] == 'image/jpeg'
        assert size == len(put_args['Body'])


class TestInvokeFunction:
    """Tests for invoke_function function"""

    def test_returns_payload(self):
        mock_lambda = Mock()
        mock_lambda.invoke.return_value = {
            'StatusCode': 200,
            'Payload': BytesIO(json.dumps({'statusCode': 200, 'status': 'WRITTEN'}).encode('utf-8'))
        }
        event = invoke_test_event.build_test_event('mybucket', 'x.jpg')

        payload = invoke_test_event.invoke_function(mock_lambda, 'resizer', event)

        assert payload['status'] == 'WRITTEN'
        call_args = mock_lambda.invoke.call_args[1]
        assert call_args['FunctionName'] == 'resizer'
        assert call_args['InvocationType'] == 'RequestResponse'
        assert json.loads(call_args['Payload']) == event


class TestCheckThumbnail:
    """Tests for check_thumbnail function"""

    def test_found(self):
        mock_s3 = Mock()
        mock_s3.head_object.return_value = {'ContentLength': 2048, 'ContentType': 'image/jpeg'}

        assert invoke_test_event.check_thumbnail(mock_s3, 'mybucket', 'HappyFace.jpg') is True
        mock_s3.head_object.assert_called_once_with(
            Bucket='mybucket-resized',
            Key='resized-HappyFace.jpg'
        )

    def test_missing(self):
        mock_s3 = Mock()
        mock_s3.head_object.side_effect = ClientError(
            {'Error': {'Code': '404', 'Message': 'Not Found'}}, 'HeadObject'
        )

        assert invoke_test_event.check_thumbnail(mock_s3, 'mybucket', 'HappyFace.jpg') is False


class TestMain:
    """Tests for main function"""

    def test_event_only(self, capsys):
        exit_code = invoke_test_event.main(['resizer', '--bucket', 'mybucket', '--key', 'a b.png', '--event-only'])

        assert exit_code == 0
        printed = json.loads(capsys.readouterr().out)
        assert printed['Records'][0]['s3']['object']['key'] == 'a+b.png'


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
