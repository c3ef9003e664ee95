"""Test the upload engine end to end over a fake Apple Music client"""

import asyncio

import pytest

from conftest import make_match, make_playlist
from music_uploader.applemusic.models import CreationStatus
from music_uploader.exceptions import AppleMusicError
from music_uploader.sync.pool import BoundedTaskPool
from music_uploader.sync.synchronizer import (
    PlaylistSynchronizer,
    RunResult,
    RunState,
    RunStatus,
    SyncResult,
)


def catalog(*known):
    """search_songs side effect that finds tracks whose term starts with a known name"""
    async def search(term, limit=1):
        for name in known:
            if term.startswith(name.replace(' ', '+') + '+'):
                return [make_match(f"t.{name}", name=name)]
        return []
    return search


def created_names(fake_client):
    return [call.args[0] for call in fake_client.create_library_playlist.await_args_list]


def attached(fake_client):
    return [(call.args[0], call.args[1]) for call in fake_client.add_library_playlist_tracks.await_args_list]


class TestPlaylistSynchronizer:
    """Test run orchestration and failure policy"""

    @pytest.mark.asyncio
    async def test_end_to_end(self, settings, fake_client, playlist_dir, write_playlist):
        write_playlist('b', [('Lost Song', 'Nobody', 'Nowhere')])
        write_playlist('A', [('First', 'Artist', 'Album'), ('Second', 'Artist', 'Album')])
        fake_client.search_songs.side_effect = catalog('First', 'Second')

        synchronizer = PlaylistSynchronizer(client=fake_client, settings=settings)
        result = await synchronizer.run(playlist_dir, show_progress=False)

        assert result.status == RunStatus.COMPLETED
        assert created_names(fake_client) == ['A', 'b']
        assert attached(fake_client) == [
            ('p.A', ['t.First', 't.Second']),
            ('p.b', []),
        ]

        playlist_a, playlist_b = result.playlists
        assert (playlist_a.tracks_attempted, playlist_a.tracks_attached) == (2, 2)
        assert (playlist_b.tracks_attempted, playlist_b.tracks_attached) == (1, 0)
        assert playlist_b.attach_succeeded
        assert playlist_b.unresolved == ['Lost Song by Nobody']
        assert result.playlists_created == 2
        assert result.tracks_attached == 2
        assert synchronizer.state == RunState.IDLE

    @pytest.mark.asyncio
    async def test_tracks_searched_in_file_order(self, settings, fake_client, playlist_dir, write_playlist):
        write_playlist('Mix', [('Zulu', 'X', 'Y'), ('Alpha', 'X', 'Y'), ('Mike', 'X', 'Y')])

        await PlaylistSynchronizer(client=fake_client, settings=settings).run(playlist_dir, show_progress=False)

        terms = [call.args[0] for call in fake_client.search_songs.await_args_list]
        assert terms == ['Zulu+X+Y', 'Alpha+X+Y', 'Mike+X+Y']

    @pytest.mark.asyncio
    async def test_unresolved_track_does_not_block_later_tracks(
        self, settings, fake_client, playlist_dir, write_playlist
    ):
        write_playlist('Mix', [('Known', 'X', 'Y'), ('Unknown', 'X', 'Y'), ('Other', 'X', 'Y')])
        fake_client.search_songs.side_effect = catalog('Known', 'Other')

        result = await PlaylistSynchronizer(client=fake_client, settings=settings).run(
            playlist_dir, show_progress=False
        )

        assert attached(fake_client) == [('p.Mix', ['t.Known', 't.Other'])]
        assert result.playlists[0].unresolved == ['Unknown by X']

    @pytest.mark.asyncio
    async def test_search_failure_skips_track(self, settings, fake_client, playlist_dir, write_playlist):
        write_playlist('Mix', [('Broken', 'X', 'Y'), ('Known', 'X', 'Y')])
        known = catalog('Known')

        async def search(term, limit=1):
            if term.startswith('Broken'):
                raise AppleMusicError("connection reset", details={'transport_error': True})
            return await known(term, limit)

        fake_client.search_songs.side_effect = search

        result = await PlaylistSynchronizer(client=fake_client, settings=settings).run(
            playlist_dir, show_progress=False
        )

        assert result.status == RunStatus.COMPLETED
        assert attached(fake_client) == [('p.Mix', ['t.Known'])]

    @pytest.mark.asyncio
    async def test_unencodable_track_skipped(self, settings, fake_client, playlist_dir, write_playlist):
        write_playlist('Mix', [('Bad \ud800', 'X', 'Y'), ('Known', 'X', 'Y')])
        fake_client.search_songs.side_effect = catalog('Known')

        result = await PlaylistSynchronizer(client=fake_client, settings=settings).run(
            playlist_dir, show_progress=False
        )

        assert fake_client.search_songs.await_count == 1
        assert attached(fake_client) == [('p.Mix', ['t.Known'])]
        assert result.playlists[0].tracks_resolved == 1

    @pytest.mark.asyncio
    async def test_create_failure_halts_run(self, settings, fake_client, playlist_dir, write_playlist):
        for name in ['a', 'b', 'c']:
            write_playlist(name, [('Song', 'X', 'Y')])

        original = fake_client.create_library_playlist.side_effect

        async def create(name):
            if name == 'b':
                raise AppleMusicError("forbidden", status=403)
            return await original(name)

        fake_client.create_library_playlist.side_effect = create

        synchronizer = PlaylistSynchronizer(client=fake_client, settings=settings)
        result = await synchronizer.run(playlist_dir, show_progress=False)

        assert result.status == RunStatus.HALTED
        assert result.halted_on == 'b'
        assert created_names(fake_client) == ['a', 'b']
        assert [call[0] for call in attached(fake_client)] == ['p.a']
        assert result.playlists[1].creation_status == CreationStatus.FAILED
        assert not result.playlists[1].created
        assert synchronizer.state == RunState.IDLE
        assert not synchronizer.is_running()

    @pytest.mark.asyncio
    async def test_created_playlist_missing_from_response_halts(
        self, settings, fake_client, playlist_dir, write_playlist
    ):
        write_playlist('a', [('Song', 'X', 'Y')])
        write_playlist('b', [('Song', 'X', 'Y')])
        fake_client.create_library_playlist.side_effect = None
        fake_client.create_library_playlist.return_value = []

        result = await PlaylistSynchronizer(client=fake_client, settings=settings).run(
            playlist_dir, show_progress=False
        )

        assert result.status == RunStatus.HALTED
        assert result.halted_on == 'a'
        assert result.playlists[0].creation_status == CreationStatus.NOT_FOUND
        assert fake_client.add_library_playlist_tracks.await_count == 0

    @pytest.mark.asyncio
    async def test_create_failure_skips_playlist_when_configured(
        self, settings, fake_client, playlist_dir, write_playlist
    ):
        settings.sync.stop_on_create_failure = False
        for name in ['a', 'b', 'c']:
            write_playlist(name, [('Song', 'X', 'Y')])

        original = fake_client.create_library_playlist.side_effect

        async def create(name):
            if name == 'b':
                raise AppleMusicError("server error", status=500)
            return await original(name)

        fake_client.create_library_playlist.side_effect = create

        result = await PlaylistSynchronizer(client=fake_client, settings=settings).run(
            playlist_dir, show_progress=False
        )

        assert result.status == RunStatus.COMPLETED
        assert created_names(fake_client) == ['a', 'b', 'c']
        assert [call[0] for call in attached(fake_client)] == ['p.a', 'p.c']
        assert result.playlists_created == 2

    @pytest.mark.asyncio
    async def test_multiple_matches_proceeds(self, settings, fake_client, playlist_dir, write_playlist):
        write_playlist('Mix', [('Known', 'X', 'Y')])
        fake_client.search_songs.side_effect = catalog('Known')
        fake_client.create_library_playlist.side_effect = None
        fake_client.create_library_playlist.return_value = [
            make_playlist('p.first', 'Mix'),
            make_playlist('p.second', 'Mix'),
        ]

        result = await PlaylistSynchronizer(client=fake_client, settings=settings).run(
            playlist_dir, show_progress=False
        )

        assert result.status == RunStatus.COMPLETED
        assert result.playlists[0].creation_status == CreationStatus.MULTIPLE_MATCHES
        assert attached(fake_client) == [('p.first', ['t.Known'])]

    @pytest.mark.asyncio
    async def test_attach_failure_continues(self, settings, fake_client, playlist_dir, write_playlist):
        write_playlist('a', [('Known', 'X', 'Y')])
        write_playlist('b', [('Known', 'X', 'Y')])
        fake_client.search_songs.side_effect = catalog('Known')
        fake_client.add_library_playlist_tracks.side_effect = [
            AppleMusicError("server error", status=500),
            204,
        ]

        result = await PlaylistSynchronizer(client=fake_client, settings=settings).run(
            playlist_dir, show_progress=False
        )

        assert result.status == RunStatus.COMPLETED
        first, second = result.playlists
        assert first.created and not first.attach_succeeded
        assert first.tracks_attached == 0
        assert second.attach_succeeded and second.tracks_attached == 1

    @pytest.mark.asyncio
    async def test_empty_directory(self, settings, fake_client, playlist_dir):
        result = await PlaylistSynchronizer(client=fake_client, settings=settings).run(
            playlist_dir, show_progress=False
        )

        assert result.status == RunStatus.COMPLETED
        assert result.playlists == []
        assert fake_client.create_library_playlist.await_count == 0

    @pytest.mark.asyncio
    async def test_missing_directory(self, settings, fake_client, temp_dir):
        result = await PlaylistSynchronizer(client=fake_client, settings=settings).run(
            temp_dir / 'missing', show_progress=False
        )

        assert result.status == RunStatus.COMPLETED
        assert result.playlists == []
        assert fake_client.create_library_playlist.await_count == 0

    @pytest.mark.asyncio
    async def test_configured_directory_used_by_default(self, settings, fake_client, write_playlist):
        write_playlist('Default', [('Song', 'X', 'Y')])

        result = await PlaylistSynchronizer(client=fake_client, settings=settings).run(show_progress=False)

        assert [playlist.playlist_name for playlist in result.playlists] == ['Default']

    @pytest.mark.asyncio
    async def test_already_running(self, settings, fake_client, playlist_dir, write_playlist):
        write_playlist('Mix', [('Song', 'X', 'Y')])

        async def slow_search(term, limit=1):
            await asyncio.sleep(0.01)
            return []

        fake_client.search_songs.side_effect = slow_search
        synchronizer = PlaylistSynchronizer(client=fake_client, settings=settings)

        first, second = await asyncio.gather(
            synchronizer.run(playlist_dir, show_progress=False),
            synchronizer.run(playlist_dir, show_progress=False),
        )

        assert first.status == RunStatus.COMPLETED
        assert second.status == RunStatus.ALREADY_RUNNING
        assert second.playlists == []
        assert fake_client.create_library_playlist.await_count == 1
        assert synchronizer.state == RunState.IDLE

    @pytest.mark.asyncio
    async def test_state_reset_after_unexpected_error(self, settings, fake_client, playlist_dir, write_playlist):
        write_playlist('Mix', [('Song', 'X', 'Y')])
        fake_client.create_library_playlist.side_effect = RuntimeError("unexpected")
        synchronizer = PlaylistSynchronizer(client=fake_client, settings=settings)

        with pytest.raises(RuntimeError):
            await synchronizer.run(playlist_dir, show_progress=False)

        assert synchronizer.state == RunState.IDLE

    @pytest.mark.asyncio
    async def test_concurrent_resolution_keeps_file_order(
        self, settings, fake_client, playlist_dir, write_playlist
    ):
        settings.sync.concurrency = 3
        names = ['One', 'Two', 'Three', 'Four', 'Five']
        write_playlist('Mix', [(name, 'X', 'Y') for name in names])
        delays = {'One': 0.05, 'Two': 0.01, 'Three': 0.04, 'Four': 0.0, 'Five': 0.02}

        async def search(term, limit=1):
            name = term.split('+')[0]
            await asyncio.sleep(delays[name])
            return [make_match(f"t.{name}", name=name)]

        fake_client.search_songs.side_effect = search

        await PlaylistSynchronizer(client=fake_client, settings=settings).run(playlist_dir, show_progress=False)

        assert attached(fake_client) == [('p.Mix', [f"t.{name}" for name in names])]

    def test_preview(self, settings, fake_client, playlist_dir, write_playlist):
        write_playlist('Mix', [('Rock & Roll', 'X', 'Y'), ('Bad \ud800', 'X', 'Y')])

        preview = PlaylistSynchronizer(client=fake_client, settings=settings).preview(playlist_dir)

        playlist, terms = preview[0]
        assert playlist.name == 'Mix'
        assert [term for _, term in terms] == ['Rock+and+Roll+X+Y', None]
        assert fake_client.search_songs.await_count == 0


class TestResults:
    """Test result summaries"""

    def test_sync_result_summary(self):
        result = SyncResult(playlist_name='Mix', tracks_attempted=3, tracks_resolved=2)
        assert 'could not be created' in result.summary

        result.playlist_id = 'p.1'
        assert 'failed' in result.summary

        result.attach_succeeded = True
        result.tracks_attached = 2
        assert result.summary == 'Mix: 2 out of 3 added'

    def test_run_result_summary(self):
        result = RunResult(status=RunStatus.HALTED, halted_on='b', playlists=[
            SyncResult(playlist_name='a', tracks_attempted=2, tracks_resolved=2, tracks_attached=2,
                       playlist_id='p.a', attach_succeeded=True),
            SyncResult(playlist_name='b', tracks_attempted=1),
        ])

        assert result.playlists_created == 1
        assert result.tracks_attempted == 3
        assert result.summary == "1 playlists created, 2 out of 3 tracks added (stopped at 'b')"
        assert 'already in progress' in RunResult(status=RunStatus.ALREADY_RUNNING).summary


class TestBoundedTaskPool:
    """Test the order-preserving task pool"""

    @pytest.mark.asyncio
    async def test_sequential_with_one_worker(self):
        events = []

        async def work(item):
            events.append(('start', item))
            await asyncio.sleep(0)
            events.append(('end', item))
            return item * 2

        results = await BoundedTaskPool(1).map(work, [1, 2, 3])

        assert results == [2, 4, 6]
        assert events == [
            ('start', 1), ('end', 1),
            ('start', 2), ('end', 2),
            ('start', 3), ('end', 3),
        ]

    @pytest.mark.asyncio
    async def test_concurrency_bounded_and_ordered(self):
        running = 0
        peak = 0

        async def work(item):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01 * (5 - item))
            running -= 1
            return item

        results = await BoundedTaskPool(2).map(work, range(5))

        assert results == [0, 1, 2, 3, 4]
        assert peak == 2

    @pytest.mark.asyncio
    async def test_on_done_counts(self):
        seen = []

        async def work(item):
            return item

        await BoundedTaskPool(1).map(work, ['a', 'b'], on_done=lambda count, result: seen.append((count, result)))

        assert seen == [(1, 'a'), (2, 'b')]

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            BoundedTaskPool(0)
