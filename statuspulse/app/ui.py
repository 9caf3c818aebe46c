HTML = """<!doctype html><meta charset="utf-8">
<title>StatusPulse</title>
<style>
body{font-family:sans-serif;margin:24px}
.grid{display:grid;grid-template-columns:repeat(auto-fill,minmax(320px,1fr));gap:12px}
.card{border:1px solid #ddd;border-radius:10px;padding:12px}
.badge{padding:2px 8px;border-radius:999px;font-size:12px}
.ok{background:#e6ffec}.err{background:#ffebe6}
.url{color:#555;font-size:12px;word-break:break-all}
.meta{color:#666;font-size:12px}
</style>
<h1>StatusPulse</h1>
<div id="ts" class="meta">Connecting...</div><div id="grid" class="grid"></div>
<script>
function fmt(epoch){ return epoch > 0 ? new Date(epoch*1000).toLocaleString() : 'never'; }
function render(data){
  document.getElementById('ts').textContent = 'Last update: '+ new Date().toLocaleString();
  const grid = document.getElementById('grid'); grid.innerHTML='';
  for (const x of data){
    const div=document.createElement('div'); div.className='card';
    div.innerHTML = `
      <div style="display:flex;justify-content:space-between;align-items:center">
        <span class="url">${x.url}</span>
        <span class="badge ${x.healthy?'ok':'err'}">${x.healthy?'healthy':'unhealthy'}</span>
      </div>
      <div>HTTP: ${x.responseCode||'-'} | ${x.responseTime} ms</div>
      <div class="meta">last healthy: ${fmt(x.lastHealthy)}</div>
      <div class="meta">last unhealthy: ${fmt(x.lastUnhealthy)}</div>
    `;
    grid.appendChild(div);
  }
}
function connect(){
  const proto = location.protocol === 'https:' ? 'wss' : 'ws';
  const ws = new WebSocket(`${proto}://${location.host}/ws`);
  ws.onmessage = ev => render(JSON.parse(ev.data));
  ws.onclose = () => {
    document.getElementById('ts').textContent = 'Disconnected, retrying...';
    setTimeout(connect, 5000);
  };
}
fetch('/status-json', {cache:'no-store'}).then(r => r.json()).then(render);
connect();
</script>
"""
