import asyncio
import io
import os
import pytest
from fastapi import UploadFile
from PIL import Image
from boingbox.file_storage import UPLOAD_DIR
from boingbox.crud import get_media
from boingbox.media_pipeline import MediaPipeline, MediaWorkItem
from boingbox.routes import media as media_routes


def png_bytes(size=(640, 480)) -> bytes:
    buf = io.BytesIO()
    Image.new('RGB', size, (200, 30, 30)).save(buf, format='PNG')
    return buf.getvalue()


async def request_upload(client, user_id, file_name='clip.mp4', file_type='video', size=1024, mime='video/mp4'):
    return await client.post('/api/media/upload-url', json={
        'user_id': user_id,
        'file_name': file_name,
        'file_size': size,
        'mime_type': mime,
        'file_type': file_type,
    })


class TestUploadRequests:

    @pytest.mark.asyncio
    async def test_image_ceiling(self, client, make_user):
        user = await make_user('uploader')
        res = await request_upload(client, user['id'], 'big.png', 'image', 11_000_000, 'image/png')
        assert res.status_code == 400
        assert res.json()['detail'] == 'File size exceeds limit for image files'

        res = await request_upload(client, user['id'], 'ok.png', 'image', 9_000_000, 'image/png')
        assert res.status_code == 200
        body = res.json()
        assert len(body['file_id']) == 32
        assert len(body['upload_token']) == 64
        assert body['upload_url'] == f"/api/media/upload/{body['file_id']}"

    @pytest.mark.asyncio
    async def test_invalid_type_and_missing_fields(self, client, make_user):
        user = await make_user('uploader')
        res = await request_upload(client, user['id'], 'x.exe', 'binary', 10, 'application/octet-stream')
        assert res.status_code == 400
        res = await request_upload(client, user['id'], '', 'document', 10, 'application/pdf')
        assert res.status_code == 400
        res = await client.post('/api/media/upload-url', json={'user_id': user['id']})
        assert res.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_uploader(self, client):
        res = await request_upload(client, 4242)
        assert res.status_code == 404

    @pytest.mark.asyncio
    async def test_status_of_unknown_file(self, client):
        res = await client.get('/api/media/status/' + '0' * 32)
        assert res.status_code == 404


class TestUploadAndProcessing:

    @pytest.mark.asyncio
    async def test_video_upload_completes(self, client, pipeline, make_user):
        user = await make_user('director')
        slot = (await request_upload(client, user['id'])).json()

        res = await client.post(
            slot['upload_url'],
            files={'file': ('clip.mp4', b'\x00' * 1024, 'video/mp4')},
            headers={'Upload-Token': slot['upload_token']},
        )
        assert res.status_code == 200, res.text
        assert res.json() == {'file_id': slot['file_id'], 'status': 'processing', 'estimated_time': 30}

        await pipeline.join()
        media = (await client.get(f"/api/media/status/{slot['file_id']}")).json()
        assert media['status'] == 'completed'
        assert media['urls']['original'] == f"/uploads/{slot['file_id']}/clip.mp4"
        assert media['urls']['thumbnail'].endswith('clip_thumb.mp4')
        assert media['urls']['preview'].endswith('clip_preview.mp4')
        assert media['metadata']['width'] == 1920
        assert media['processing']['thumbnail_generated'] is True
        assert 'processing_time' in media['processing']

    @pytest.mark.asyncio
    async def test_image_upload_generates_thumbnail(self, client, pipeline, make_user):
        user = await make_user('photographer')
        data = png_bytes()
        slot = (await request_upload(client, user['id'], 'photo.png', 'image', len(data), 'image/png')).json()

        res = await client.post(
            slot['upload_url'],
            files={'file': ('photo.png', data, 'image/png')},
            headers={'Upload-Token': slot['upload_token']},
        )
        assert res.json()['estimated_time'] == 5

        await pipeline.join()
        media = (await client.get(f"/api/media/status/{slot['file_id']}")).json()
        assert media['status'] == 'completed'
        assert media['metadata'] == {'width': 640, 'height': 480, 'format': 'PNG'}
        assert media['urls']['thumbnail'] == f"/uploads/{slot['file_id']}/photo_thumb.jpg"
        assert os.path.exists(os.path.join(UPLOAD_DIR, slot['file_id'], 'photo_thumb.jpg'))

        served = await client.get(media['urls']['thumbnail'])
        assert served.status_code == 200
        assert served.content[:2] == b'\xff\xd8'

    @pytest.mark.asyncio
    async def test_undecodable_image_fails(self, client, pipeline, make_user):
        user = await make_user('photographer')
        slot = (await request_upload(client, user['id'], 'broken.png', 'image', 64, 'image/png')).json()
        await client.post(
            slot['upload_url'],
            files={'file': ('broken.png', b'not really a png', 'image/png')},
            headers={'Upload-Token': slot['upload_token']},
        )
        await pipeline.join()
        media = (await client.get(f"/api/media/status/{slot['file_id']}")).json()
        assert media['status'] == 'failed'
        assert media['processing']['error']

    @pytest.mark.asyncio
    async def test_document_format_from_extension(self, client, pipeline, make_user):
        user = await make_user('clerk')
        slot = (await request_upload(client, user['id'], 'report.pdf', 'document', 16, 'application/pdf')).json()
        await client.post(
            slot['upload_url'],
            files={'file': ('report.pdf', b'%PDF-1.4 minimal', 'application/pdf')},
            headers={'Upload-Token': slot['upload_token']},
        )
        await pipeline.join()
        media = (await client.get(f"/api/media/status/{slot['file_id']}")).json()
        assert media['metadata']['format'] == 'PDF'
        assert 'preview' in media['urls']

    @pytest.mark.asyncio
    async def test_token_checks(self, client, pipeline, make_user):
        user = await make_user('director')
        slot = (await request_upload(client, user['id'])).json()
        upload = {'files': {'file': ('clip.mp4', b'\x00' * 16, 'video/mp4')}}

        res = await client.post(slot['upload_url'], headers={'Upload-Token': 'f' * 64}, **upload)
        assert res.status_code == 403
        res = await client.post(slot['upload_url'], **upload)
        assert res.status_code == 400

        res = await client.post(slot['upload_url'], headers={'Upload-Token': slot['upload_token']}, **upload)
        assert res.status_code == 200

        # a slot accepts exactly one upload
        res = await client.post(slot['upload_url'], headers={'Upload-Token': slot['upload_token']}, **upload)
        assert res.status_code == 400
        await pipeline.join()

    @pytest.mark.asyncio
    async def test_upload_to_unknown_file(self, client, pipeline):
        res = await client.post(
            '/api/media/upload/' + 'a' * 32,
            files={'file': ('clip.mp4', b'\x00', 'video/mp4')},
            headers={'Upload-Token': 'b' * 64},
        )
        assert res.status_code == 404

    @pytest.mark.asyncio
    async def test_upload_without_running_pipeline_fails_the_record(self, client, make_user):
        user = await make_user('director')
        slot = (await request_upload(client, user['id'])).json()
        upload = {'files': {'file': ('clip.mp4', b'\x00' * 16, 'video/mp4')}}

        res = await client.post(slot['upload_url'], headers={'Upload-Token': slot['upload_token']}, **upload)
        assert res.status_code == 503
        media = (await client.get(f"/api/media/status/{slot['file_id']}")).json()
        assert media['status'] == 'failed'
        assert media['processing']['error'] == 'Media pipeline is not running'

        # the slot is spent; a retry needs a new upload request
        res = await client.post(slot['upload_url'], headers={'Upload-Token': slot['upload_token']}, **upload)
        assert res.status_code == 400

    @pytest.mark.asyncio
    async def test_cancelled_enqueue_fails_the_record(self, client, make_user, monkeypatch):
        class CancellingPipeline:
            async def enqueue(self, item):
                raise asyncio.CancelledError()

        monkeypatch.setattr(media_routes, 'media_pipeline', CancellingPipeline())
        user = await make_user('director')
        slot = (await request_upload(client, user['id'])).json()
        file = UploadFile(io.BytesIO(b'\x00' * 16), filename='clip.mp4')

        with pytest.raises(asyncio.CancelledError):
            await media_routes.upload(slot['file_id'], file, slot['upload_token'])

        media = await get_media(slot['file_id'])
        assert media.status == 'failed'
        assert media.processing['error'] == 'Upload cancelled before processing started'

    @pytest.mark.asyncio
    async def test_mixed_batch_drains_to_terminal_states(self, client, pipeline, make_user):
        user = await make_user('batcher')
        image = png_bytes((320, 200))
        uploads = [
            ('a.png', 'image', 'image/png', image),
            ('b.mp4', 'video', 'video/mp4', b'\x00' * 512),
            ('broken.png', 'image', 'image/png', b'not really a png'),
            ('c.pdf', 'document', 'application/pdf', b'%PDF-1.4 minimal'),
            ('d.mp3', 'audio', 'audio/mpeg', b'ID3' + b'\x00' * 61),
            ('e.png', 'image', 'image/png', image),
        ]
        file_ids = {}
        for name, kind, mime, data in uploads:
            slot = (await request_upload(client, user['id'], name, kind, len(data), mime)).json()
            res = await client.post(
                slot['upload_url'],
                files={'file': (name, data, mime)},
                headers={'Upload-Token': slot['upload_token']},
            )
            assert res.status_code == 200, res.text
            file_ids[name] = slot['file_id']

        await pipeline.join()
        assert pipeline.qsize() == 0

        statuses = {}
        for name, file_id in file_ids.items():
            statuses[name] = (await client.get(f'/api/media/status/{file_id}')).json()['status']
        assert set(statuses.values()) <= {'completed', 'failed'}
        assert statuses.pop('broken.png') == 'failed'
        assert set(statuses.values()) == {'completed'}


class TestMediaAccess:

    @pytest.mark.asyncio
    async def test_signed_url_list_and_delete(self, client, pipeline, make_user):
        owner = await make_user('owner')
        other = await make_user('other')
        slot = (await request_upload(client, owner['id'], 'song.mp3', 'audio', 32, 'audio/mpeg')).json()
        await client.post(
            slot['upload_url'],
            files={'file': ('song.mp3', b'ID3' + b'\x00' * 29, 'audio/mpeg')},
            headers={'Upload-Token': slot['upload_token']},
        )
        await pipeline.join()

        res = await client.get(f"/api/media/signed-url/{slot['file_id']}", params={'user_id': owner['id']})
        assert res.status_code == 200
        assert res.json()['url'].startswith(f"/uploads/{slot['file_id']}/song.mp3?token=")
        res = await client.get(f"/api/media/signed-url/{slot['file_id']}", params={'user_id': other['id']})
        assert res.status_code == 403

        res = await client.get(f"/api/media/user/{owner['id']}", params={'type': 'audio'})
        listing = res.json()
        assert listing['pagination']['total'] == 1
        assert listing['media'][0]['metadata']['sample_rate'] == 44100

        res = await client.delete(f"/api/media/{slot['file_id']}", params={'user_id': other['id']})
        assert res.status_code == 403
        res = await client.delete(f"/api/media/{slot['file_id']}", params={'user_id': owner['id']})
        assert res.status_code == 200
        assert not os.path.exists(os.path.join(UPLOAD_DIR, slot['file_id']))
        res = await client.get(f"/api/media/status/{slot['file_id']}")
        assert res.status_code == 404


class TestPipeline:

    @pytest.mark.asyncio
    async def test_full_queue_applies_backpressure(self):
        pipeline = MediaPipeline(workers=1, maxsize=1)
        release = asyncio.Event()
        processed = []

        async def slow_process(item):
            await release.wait()
            processed.append(item.media_id)
            return 'completed'

        pipeline.process_item = slow_process
        await pipeline.start()
        try:
            await pipeline.enqueue(MediaWorkItem(1, '/tmp/a', 'image'))
            await asyncio.sleep(0.01)
            await pipeline.enqueue(MediaWorkItem(2, '/tmp/b', 'image'))
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(pipeline.enqueue(MediaWorkItem(3, '/tmp/c', 'image')), timeout=0.05)

            release.set()
            await pipeline.join()
            assert processed == [1, 2]
        finally:
            await pipeline.stop()

    @pytest.mark.asyncio
    async def test_enqueue_requires_running_pipeline(self):
        pipeline = MediaPipeline(workers=1, maxsize=1)
        with pytest.raises(RuntimeError):
            await pipeline.enqueue(MediaWorkItem(1, '/tmp/a', 'image'))

    @pytest.mark.asyncio
    async def test_missing_record_is_skipped(self, db):
        pipeline = MediaPipeline(workers=1, maxsize=1)
        assert await pipeline.process_item(MediaWorkItem(12345, '/tmp/nothing', 'video')) is None
